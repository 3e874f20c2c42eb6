"""
Customer code generation.
"""
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from portray.features.customers.models import Customer, CustomerCodeSequence
from portray.features.ports.models import Terminal
from portray.utils import utcnow


def format_customer_code(year: int, short_code: str, counter: int) -> str:
    return f"{year}_{short_code}_{counter:03d}"


async def _highest_existing_counter(db: AsyncSession, prefix: str) -> int:
    result = await db.execute(
        select(Customer.customer_code).where(Customer.customer_code.startswith(prefix, autoescape=True))
    )
    highest = 0
    for code in result.scalars():
        suffix = code[len(prefix):]
        if suffix.isdigit():
            highest = max(highest, int(suffix))
    return highest


async def next_customer_code(db: AsyncSession, terminal: Terminal, year: int | None = None) -> str:
    """
    Reserve the next code for a terminal in a year.

    Counters restart every year. The last counter issued is stored per prefix,
    so a code is never handed out twice, even after its customer is deleted.
    The reservation is flushed with the caller's session and commits with it.
    """
    year = year or utcnow().year
    prefix = f"{year}_{terminal.short_code}_"

    sequence = await db.get(CustomerCodeSequence, prefix)
    if sequence is None:
        # customers created before the sequence row existed
        sequence = CustomerCodeSequence(prefix=prefix, last_value=await _highest_existing_counter(db, prefix))
        db.add(sequence)

    sequence.last_value += 1
    await db.flush()
    return format_customer_code(year, terminal.short_code, sequence.last_value)
