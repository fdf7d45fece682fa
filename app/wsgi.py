from app.sgsc import create_app

app = create_app()
