import sys

from treelox.treelox import main

sys.exit(main())
