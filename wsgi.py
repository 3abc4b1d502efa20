import atexit
from taskboard import create_app

app = create_app()
# the process owns the engine: release pooled connections on exit
atexit.register(app.config["DB_ENGINE"].dispose)

if __name__ == "__main__":
    app.run(host="0.0.0.0", port=5000)
