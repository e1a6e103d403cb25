"""
ASGI entrypoint: expose `app` pour les process managers (uvicorn, gunicorn -k uvicorn.workers.UvicornWorker).
Toute la configuration est centralisée dans gateway.app.
"""

from gateway.app import app

if __name__ == "__main__":
    import os
    import uvicorn
    uvicorn.run(
        "gateway.asgi:app",
        host="0.0.0.0",
        port=int(os.getenv("PORT", "3002")),
        reload=True,
    )
