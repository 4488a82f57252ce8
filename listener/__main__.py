from listener.main import run


run()
