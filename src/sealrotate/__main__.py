import sys

from sealrotate.cli import main

sys.exit(main())
