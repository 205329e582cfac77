"""
Seed file generator for the User Registry.

Writes a deterministic, pseudo-random seed file (JSON array of
`{name, email, created_at}`) that can be used via `REGISTRY_SEED_PATH`.
Emails are unique within the file; timestamps increase with position.
"""

from __future__ import annotations

import json
import random
from datetime import UTC, datetime, timedelta
from pathlib import Path

import typer

from user_registry.domain.models import format_timestamp

app = typer.Typer(help="Generate a synthetic seed file for the user registry.")

FIRST_NAMES = [
    "Anna", "Bruno", "Carla", "Diego", "Elena", "Farid", "Grace", "Hugo",
    "Ines", "Jonas", "Keiko", "Liam", "Marta", "Nadia", "Omar", "Priya",
]
LAST_NAMES = [
    "Almeida", "Becker", "Costa", "Dubois", "Evans", "Fischer", "Garcia",
    "Hansen", "Ito", "Jensen", "Kowalski", "Lopez", "Moreau", "Novak",
]
DOMAINS = ["example.com", "example.org", "mail.test"]


def _generate_users(rows: int, seed: int, start: datetime) -> list[dict[str, str]]:
    rng = random.Random(seed)
    users: list[dict[str, str]] = []
    seen: set[str] = set()
    moment = start

    for i in range(rows):
        first = rng.choice(FIRST_NAMES)
        last = rng.choice(LAST_NAMES)
        local = f"{first}.{last}".lower()
        email = f"{local}@{rng.choice(DOMAINS)}"
        if email in seen:
            email = f"{local}{i}@{rng.choice(DOMAINS)}"
        seen.add(email)
        moment += timedelta(minutes=rng.randint(1, 24 * 60))
        users.append(
            {
                "name": f"{first} {last}",
                "email": email,
                "created_at": format_timestamp(moment),
            }
        )
    return users


def _write_seed_file(path: Path, users: list[dict[str, str]]) -> None:
    path.parent.mkdir(parents=True, exist_ok=True)
    with path.open("w", encoding="utf-8") as f:
        json.dump(users, f, indent=2, ensure_ascii=False)
        f.write("\n")


@app.command()
def main(
    rows: int = typer.Option(
        50,
        "--rows",
        "-r",
        help="Number of users to generate.",
    ),
    seed: int = typer.Option(
        42,
        "--seed",
        help="Deterministic RNG seed.",
    ),
    output: Path = typer.Option(
        Path("seed_users.json"),
        "--output",
        "-o",
        help="Seed file to write.",
    ),
) -> None:
    """
    Generate a seed file with `rows` unique users.
    """
    start = datetime(2024, 1, 1, tzinfo=UTC)
    users = _generate_users(rows, seed=seed, start=start)
    _write_seed_file(output, users)
    typer.echo(f"Wrote {len(users)} users to {output}")


if __name__ == "__main__":
    app()
