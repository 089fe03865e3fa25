# projecttree/main.py
import sys

from projecttree.ui.application import run
from projecttree.services.logging import setup_logging

if __name__ == "__main__":
    setup_logging() # Configure logging early
    sys.exit(run(sys.argv))
