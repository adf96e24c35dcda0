# backend/wsgi.py
import os

from purchase_portal import create_app

# The in-process reminder trigger stays off unless REMINDER_SCHEDULER_ENABLED
# is set, and should be set on one process only. Otherwise schedule
# `flask reminders run` from cron.
app = create_app()

if __name__ == "__main__":
    app.run(port=int(os.environ.get("PORT", "5000")))
