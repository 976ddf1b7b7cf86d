"""Entry point for running bot as module: python -m basewallet.bot"""

# Load .env file before importing anything else
from dotenv import load_dotenv
load_dotenv()

from basewallet.bot.bot import main

if __name__ == "__main__":
    main()
