import sys

from hostwatch.daemon import main

sys.exit(main())
