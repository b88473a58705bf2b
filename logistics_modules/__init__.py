"""
Logistics Modules.

Thin orchestration layers over the Logistics Kernel and Engines.
Each module contains:
- Domain models (the nouns)
- Workflows (state machines)
- Configuration schemas (policy and settings)
- ORM mappings for the storage boundary

Modules:
- Proforma: proforma job orders, approval lifecycle, cost confirmation,
  conversion to job orders

Actual calculation logic lives in the engines.
"""

from logistics_modules import proforma

__all__ = ["proforma"]
