from .flask_server import main

main()
