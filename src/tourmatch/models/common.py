"""Field types shared by the domain models."""

from decimal import Decimal
from typing import Annotated

from pydantic import PlainSerializer

# Money is kept as Decimal end to end (DynamoDB rejects floats) and only
# rendered as a JSON number at the API boundary.
Money = Annotated[
    Decimal,
    PlainSerializer(lambda value: float(value), return_type=float, when_used="json"),
]
