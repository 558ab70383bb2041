import logging

import uvicorn
from threemeals.api.api_run import create_app
from threemeals.utilities.config import APP_HOST, APP_PORT, DEBUG
from threemeals.utilities.network import get_local_ip

logging.basicConfig(
    level=logging.DEBUG if DEBUG else logging.INFO,
    format="%(asctime)s %(levelname)s %(name)s: %(message)s",
)

app = create_app()


if __name__ == "__main__":
    local_url = f"http://localhost:{APP_PORT}"
    local_ip = get_local_ip()
    lan_url = f"http://{local_ip}:{APP_PORT}"
    # Print a friendly message that points to the URL you can open in a browser
    print(f"3meals API running on {local_url} (Press CTRL+C to quit)")
    # Also show the LAN-accessible URL for other devices on the same network
    if local_ip not in ("127.0.0.1", "localhost"):
        print(f"Accessible from other devices at: {lan_url}")
    uvicorn.run(app, host=APP_HOST, port=APP_PORT)
