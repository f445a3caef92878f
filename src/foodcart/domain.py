"""foodcart bounded context: the customer's cart before an order exists.

Holds the Cart aggregate, its lines and the events it raises. The host
application calls ``foodcart.init()`` once at startup; cart operations then
run inside ``foodcart.domain_context()``, which ``CartSession`` pushes for
every call it makes.
"""

import structlog
from protean.domain import Domain

foodcart = Domain(name="foodcart")

logger = structlog.get_logger(__name__)
