import sys

from pyaai.cli import main

sys.exit(main())
