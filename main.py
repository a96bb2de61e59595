from shipyard import create_app


# App Engine looks for an app called 'app' in 'main.py'
app = create_app()


if __name__ == '__main__':
    app.run(host='127.0.0.1', port=8080, debug=True)
