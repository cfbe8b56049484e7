# run.py
import os
from dotenv import load_dotenv # type: ignore

# Load .env file from the root directory before reading configuration
dotenv_path = os.path.join(os.path.dirname(__file__), '.env')
if os.path.exists(dotenv_path):
    load_dotenv(dotenv_path)
else:
    print("Warning: .env file not found.")

from library_api import create_app
from library_api.config import AppConfig

config = AppConfig.from_env()
app = create_app(config)

if __name__ == '__main__':
    app.run(host=config.host, port=config.port, debug=config.debug, threaded=True)
