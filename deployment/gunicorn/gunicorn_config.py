bind = "unix:/var/www/contact-form/gunicorn.sock"
wsgi_app = "core.wsgi:application"
workers = 2
# SMTP sends happen inside the request
timeout = 90

# Logging
accesslog = "/var/log/contact-form/access.log"
errorlog = "/var/log/contact-form/error.log"
loglevel = "info"

proc_name = "contact-form"


def worker_abort(worker):
    """Called when a worker times out, usually on a hung SMTP connection."""
    worker.log.warning("Worker aborted; a contact submission may be stored without its emails")
