"""
Shared module for configuration, security and infrastructure used by the API.

STRUCTURE:
- menu_shared.config: Configuration
  - settings.py: Environment config (pydantic-settings)
  - logging.py: Structured logging and auth audit trail
  - constants.py: Roles, OrderStatus, TokenType, Limits

- menu_shared.infrastructure: Database and request plumbing
  - db.py: SQLAlchemy sessions, safe_commit(), row-level security context
  - correlation.py: X-Request-ID propagation

- menu_shared.security: Authentication
  - auth.py: JWT signing/verification
  - password.py: Bcrypt hashing
  - tokens.py: Opaque token generation and hashing
  - rate_limit.py: slowapi limiter

- menu_shared.utils: Utilities
  - exceptions.py: HTTP exceptions with auto-logging, database error translation
  - responses.py: Response envelope
  - validators.py: Identifier and field validators
  - schemas.py: Auth and user request/response models
  - resource_schemas.py: Restaurant, catalog, table, order and QR models

IMPORT EXAMPLES:
    from menu_shared.security.auth import sign_access_token, verify_access_token
    from menu_shared.infrastructure.db import get_db, safe_commit
    from menu_shared.config.settings import settings
    from menu_shared.config.constants import Roles, OrderStatus
    from menu_shared.utils.exceptions import NotFoundError, ConflictError
"""
