import asyncio
import sys
from pathlib import Path

sys.path.insert(0, str(Path(__file__).resolve().parent.parent))

from dotenv import load_dotenv

env_path = Path(__file__).resolve().parent.parent / ".env"
load_dotenv(dotenv_path=env_path)

from sqlalchemy import select

from skillswap.core.auth import get_password_hash
from skillswap.database import AsyncSessionLocal
from skillswap.models import SkillCategory, SkillLevel, SkillListing, User

DEMO_PASSWORD = "demo1234"

DEMO_USERS = [
    {
        "name": "Ada Demo",
        "email": "ada@skillswap.dev",
        "linkedin_profile": "https://www.linkedin.com/in/ada-demo",
        "location": "Berlin",
        "bio": "Backend developer who wants to learn to cook properly.",
        "skills_offered": ["Python", "SQL"],
        "skills_wanted": ["Cooking"],
        "listing": {
            "title": "Python mentoring for beginners",
            "description": "Weekly pairing sessions on Python basics and small projects.",
            "category": SkillCategory.programming,
            "level": SkillLevel.beginner,
            "time_commitment": "2 hours/week",
            "availability": "Weekday evenings",
            "skills_wanted": ["Cooking"],
        },
    },
    {
        "name": "Luca Demo",
        "email": "luca@skillswap.dev",
        "linkedin_profile": "https://www.linkedin.com/in/luca-demo",
        "location": "Berlin",
        "bio": "Chef looking to automate the restaurant's spreadsheets.",
        "skills_offered": ["Cooking", "Baking"],
        "skills_wanted": ["Python"],
        "listing": {
            "title": "Italian home cooking",
            "description": "Fresh pasta, sauces and kitchen basics in a shared kitchen.",
            "category": SkillCategory.cooking,
            "level": SkillLevel.intermediate,
            "time_commitment": "3 hours/week",
            "availability": "Weekends",
            "skills_wanted": ["Python"],
        },
    },
]


async def seed_demo_data():
    async with AsyncSessionLocal() as db:
        for entry in DEMO_USERS:
            result = await db.execute(select(User).where(User.email == entry["email"]))
            existing = result.scalar_one_or_none()

            if existing:
                print(f"✅ User '{existing.name}' already exists (ID: {existing.id})")
                continue

            listing_data = entry["listing"]
            user = User(
                name=entry["name"],
                email=entry["email"],
                password_hash=get_password_hash(DEMO_PASSWORD),
                linkedin_profile=entry["linkedin_profile"],
                location=entry["location"],
                bio=entry["bio"],
                skills_offered=entry["skills_offered"],
                skills_wanted=entry["skills_wanted"],
            )
            db.add(user)
            await db.flush()

            listing = SkillListing(
                user_id=user.id,
                location=entry["location"],
                **listing_data,
            )
            db.add(listing)
            await db.commit()

            print(f"\n✅ User '{user.name}' created (ID: {user.id})")
            print(f"   - Email: {user.email}")
            print(f"   - Listing: {listing.title} ({listing.category})")

        print(f"\n🚀 Demo data ready! Password for every demo user: {DEMO_PASSWORD}")


if __name__ == "__main__":
    asyncio.run(seed_demo_data())
