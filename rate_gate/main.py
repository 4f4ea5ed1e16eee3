import uvicorn

from rate_gate.core.app_factory import create_app

app = create_app()


def run() -> None:
    """Console entry point: serve ``rate_gate.main:app`` with uvicorn."""
    uvicorn.run("rate_gate.main:app", host="0.0.0.0", port=3000)


if __name__ == "__main__":
    run()
