import rankboard.api.app

if __name__=='__main__':
    rankboard.api.app.start()
