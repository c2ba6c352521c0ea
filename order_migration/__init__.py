"""
Order Migration

Bulk migration of order records from a relational source store (MS SQL Server)
into a normalized relational destination store (MySQL).

Supports:
- Paginated, deterministic extraction of denormalized order rows
- Per-record transformation into order, product, total and voucher rows
- Transactional multi-table upserts (safe to re-run)
- Post-write field-level validation against the source
- Text, CSV and JSON migration reports
"""

__version__ = "0.1.0"
