import os

from dotenv import load_dotenv


# PUBLIC_INTERFACE
def main() -> None:
    """
    Entrypoint for running the user service via Uvicorn.

    Loads environment variables from a local `.env` if present, then binds to
    HOST/PORT (defaults: 0.0.0.0:3001). Settings are read at import time of
    the app module, so `.env` must be loaded first.
    """
    load_dotenv(override=False)

    import uvicorn  # imported after dotenv so env is available

    host = os.getenv("UVICORN_HOST", os.getenv("HOST", "0.0.0.0"))
    port = int(os.getenv("PORT", "3001"))
    workers = int(os.getenv("UVICORN_WORKERS", "1"))

    uvicorn.run("hrm_user_service.api.main:app", host=host, port=port, workers=workers, reload=False)


if __name__ == "__main__":
    main()
