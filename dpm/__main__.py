import sys

from dpm.cli import main

sys.exit(main())
