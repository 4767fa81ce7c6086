from farmstore import create_app

app = create_app()
