import sys

from icp_transfer.cli import main

sys.exit(main())
