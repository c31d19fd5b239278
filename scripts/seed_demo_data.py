#!/usr/bin/env python3
"""Seed a demo user with rigs and balances for local dashboard testing."""

import argparse
import asyncio
import random

RIG_PROFILES = [
    {"model": "Antminer S19 Pro", "cryptocurrency": "BTC", "hash_rate": 110.0, "unit": "TH/s", "power": 3250},
    {"model": "Antminer S19j Pro", "cryptocurrency": "BTC", "hash_rate": 100.0, "unit": "TH/s", "power": 3050},
    {"model": "Whatsminer M30S++", "cryptocurrency": "BTC", "hash_rate": 112.0, "unit": "TH/s", "power": 3472},
    {"model": "Avalon 1246", "cryptocurrency": "BTC", "hash_rate": 90.0, "unit": "TH/s", "power": 3420},
    {"model": "RTX 3090 x6", "cryptocurrency": "ETH", "hash_rate": 720.0, "unit": "MH/s", "power": 1800},
    {"model": "RX 6800 XT x8", "cryptocurrency": "ETH", "hash_rate": 512.0, "unit": "MH/s", "power": 1450},
]


async def seed_rigs(storage, owner_id: str, count: int):
    print(f"Generating {count} rigs for {owner_id}...")
    for i in range(count):
        profile = random.choice(RIG_PROFILES)
        rig = await storage.rigs.create(
            owner_id=owner_id,
            name=f"Rig {i + 1:02d}",
            model=profile["model"],
            cryptocurrency=profile["cryptocurrency"],
            hash_rate=round(profile["hash_rate"] * random.uniform(0.9, 1.05), 2),
            hash_rate_unit=profile["unit"],
            power_consumption=profile["power"],
            is_active=random.random() > 0.2,
        )
        await storage.rigs.update(owner_id, rig["id"], {
            "dailyEarnings": round(random.uniform(5.0, 25.0), 2),
        })
    print(f"Created {count} rigs")


async def seed_balances(storage, owner_id: str):
    await storage.balances.set_amount(owner_id, "BTC", round(random.uniform(0.01, 0.5), 6))
    await storage.balances.set_amount(owner_id, "ETH", round(random.uniform(0.5, 10.0), 6))
    print("Created BTC and ETH balances")


async def main():
    parser = argparse.ArgumentParser(description="Seed demo data for the mining dashboard")
    parser.add_argument("--user", type=str, default="demo", help="User id to create")
    parser.add_argument("--rigs", type=int, default=4, help="Number of rigs")
    parser.add_argument("--db", type=str, default="data/rigwatch.db", help="Database path")
    args = parser.parse_args()

    from rigwatch.auth import AuthService
    from rigwatch.storage import StorageManager

    print(f"Connecting to database: {args.db}")
    storage = StorageManager(args.db)
    await storage.initialize()

    try:
        auth = AuthService(storage.users, jwt_secret="seed")
        user = await storage.users.get(args.user)
        if user is None:
            user = await auth.register(args.user, email=f"{args.user}@example.com", first_name="Demo")

        await seed_rigs(storage, args.user, args.rigs)
        await seed_balances(storage, args.user)
    finally:
        await storage.close()

    print("\nDone! Use this key with the API:")
    print(f"  X-API-Key: {user['api_key']}")


if __name__ == "__main__":
    asyncio.run(main())
