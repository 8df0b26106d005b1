import sys

from page_index.cli import main


sys.exit(main())
