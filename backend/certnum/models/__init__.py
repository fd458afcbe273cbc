"""ORM Models — SQLAlchemy declarative models for issued certificates and their sequence.

Invariants:
    - All models inherit from Base (db/base.py)
    - certificate_issues.certificate_number is UNIQUE; NULL means unassigned

Design Decisions:
    - One file per entity for locality
    - All models imported here so Base.metadata is complete before create_all
      or alembic autogenerate runs
"""

from certnum.models.certificate_issue import CertificateIssue  # noqa: F401
from certnum.models.certificate_sequence import CertificateSequence  # noqa: F401
from certnum.models.certificate_element import CertificateElement  # noqa: F401
