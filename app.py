from src.smart_attendance.smart_attendance.main import create_app

app = create_app()

if __name__ == "__main__":
    # The verification loop runs on its own thread; the reloader would start it twice.
    app.run(host="0.0.0.0", port=5000, debug=app.config["DEBUG"], use_reloader=False)
