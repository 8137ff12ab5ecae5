"""CodeCrafter - Client/developer marketplace core.

This package provides the project application and assignment workflow for
the CodeCrafter marketplace: account approval, project posting, developer
applications, and the atomic "accept one, reject the rest" decision, backed
by a PostgreSQL document store and best-effort email notifications.
"""

__version__ = "0.1.0"
