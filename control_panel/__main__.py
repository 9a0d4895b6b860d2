import sys

from control_panel.cli import main

sys.exit(main())
