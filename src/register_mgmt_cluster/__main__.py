"""Allow ``python -m register_mgmt_cluster``."""

import sys

from register_mgmt_cluster.cli import main

if __name__ == "__main__":
    sys.exit(main())
