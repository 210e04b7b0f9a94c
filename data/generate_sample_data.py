"""Generate sample Opportunity data for metricrecon demos."""

import random
from datetime import date, timedelta

STAGES = ["Prospecting", "Qualification", "Proposal", "Negotiation", "Closed Won", "Closed Lost"]
ACCOUNTS = ["Acme", "Globex", "Initech", "Umbrella", "Hooli", "Stark", "Wayne", "Wonka"]

OPPORTUNITY_COLUMNS = [
    "Id VARCHAR",
    "Name VARCHAR",
    "Amount DECIMAL(12, 2)",
    "Probability DOUBLE",
    "StageName VARCHAR",
    "IsWon BOOLEAN",
    "CloseDate DATE",
    "CreatedDate TIMESTAMP",
]


def generate_opportunities(n: int, start_id: int = 1) -> list[tuple]:
    """Generate opportunity rows."""
    start_date = date(2024, 1, 1)
    rows = []

    for i in range(start_id, start_id + n):
        stage = random.choice(STAGES)
        close_date = start_date + timedelta(days=random.randint(0, 364))
        created = close_date - timedelta(days=random.randint(7, 120))
        rows.append(
            (
                f"006{i:012d}",
                f"{random.choice(ACCOUNTS)} deal {i}",
                round(random.uniform(500, 50000), 2),
                100.0 if stage == "Closed Won" else round(random.uniform(0, 90), 1),
                stage,
                stage == "Closed Won",
                close_date,
                f"{created.isoformat()} 09:00:00",
            )
        )

    return rows


def drift(rows: list[tuple], changed: int = 20, added: int = 15) -> list[tuple]:
    """Copy of ``rows`` with some amounts and stages changed and new rows appended.

    this is what a sandbox refreshed a while ago and then edited looks like.
    """
    drifted = list(rows)
    for index in random.sample(range(len(drifted)), min(changed, len(drifted))):
        row = list(drifted[index])
        row[2] = round(float(row[2]) * random.uniform(0.8, 1.2), 2)
        row[4] = random.choice(STAGES)
        row[5] = row[4] == "Closed Won"
        drifted[index] = tuple(row)
    drifted.extend(generate_opportunities(added, start_id=len(rows) + 1))
    return drifted


def generate_sample_data(n: int = 500, seed: int = 42) -> tuple[list[tuple], list[tuple]]:
    """Source rows and drifted target rows."""
    random.seed(seed)  # reproducible data
    source = generate_opportunities(n)
    return source, drift(source)
