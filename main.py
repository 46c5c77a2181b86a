import sys

from tracking_queue_app.cli import main


if __name__ == "__main__":
    sys.exit(main())
