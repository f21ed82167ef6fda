# main.py
import logging
from nomadigma.app import NomadigmaApp
from nomadigma.config import setup_logging

def main():
    # Setup logging
    setup_logging()
    logger = logging.getLogger(__name__)

    try:
        # Initialize and start server
        NomadigmaApp().start()
    except Exception as e:
        logger.error(f"Error starting server: {e}", exc_info=True)
        raise

if __name__ == "__main__":
    main()
