from app.api.main import app

if __name__ == "__main__":
    import uvicorn
    from app.core.settings import load_settings

    settings = load_settings()
    uvicorn.run(app, host=settings.host, port=settings.port)
