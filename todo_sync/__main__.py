import sys

from todo_sync.main import main

sys.exit(main())
