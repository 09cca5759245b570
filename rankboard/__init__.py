"""
Rankboard - Local SEO Rank & Revenue Core

Tracks local-business clients, the keywords they rank for, and the
competitors they are measured against:
1. Estimates monthly revenue opportunity from rank differences
2. Manages filterable, paginated, bulk-selectable entity collections
3. Persists keywords, clients and competitors through SQLAlchemy
"""

__version__ = "0.1.0"
