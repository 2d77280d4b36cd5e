# CricRoom Gunicorn Configuration
#
# Writes to one match are serialised by a per-match lock inside each worker
# and by the optimistic version column across workers, so several workers
# are safe; a request that loses the race gets a 409 and should retry.

bind = "127.0.0.1:5000"
workers = 2
threads = 4
timeout = 120
