import sys

from jsondelta.cli import main

sys.exit(main())
