# src/app.py          <-- keep it at the top level of the ZIP
# Handler path:  app.handler
#
# What it does:
#   • Re-exports the Users API Lambda handler so the function can be
#     configured with a short handler path.

from users_api.app import handler

__all__ = ["handler"]
