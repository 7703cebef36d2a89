"""Script to create a demo member, an approved club and its first goal."""
import asyncio
import sys
import uuid
from pathlib import Path

# Add parent directory to path
sys.path.insert(0, str(Path(__file__).parent.parent))

from sqlalchemy import select

from clubhub.crud.user import user as user_crud
from clubhub.database import AsyncSessionLocal, init_db
from clubhub.models.club import Club, ClubStatus
from clubhub.models.goal import Goal, Objective
from clubhub.models.user import User

SEED_EMAIL = "organizer@clubhub.local"
SEED_CLUB = "Demo Club"


async def seed_club():
    """Create the seed member, club, goal and objective if they don't exist."""
    await init_db()
    async with AsyncSessionLocal() as db:
        organizer = await user_crud.get_by_email(db, email=SEED_EMAIL)
        if organizer is None:
            organizer = User(email=SEED_EMAIL, full_name="Demo Organizer", clubs=[])
            db.add(organizer)
            await db.commit()
            print(f"✓ Created user {SEED_EMAIL}")
        else:
            print(f"✓ User {SEED_EMAIL} already exists")

        result = await db.execute(select(Club).where(Club.name == SEED_CLUB))
        club_obj = result.scalar_one_or_none()
        if club_obj is not None:
            print(f"✓ Club '{SEED_CLUB}' already exists ({club_obj.id})")
            return

        club_obj = Club(
            id=uuid.uuid4(),
            name=SEED_CLUB,
            description="Seed data for local development",
            status=ClubStatus.APPROVED.value,
            members=[organizer],
        )
        goal = Goal(club=club_obj, title="Run the first season")
        objective = Objective(goal=goal, club_id=club_obj.id, title="Hold a kickoff meeting")
        db.add_all([club_obj, goal, objective])
        await db.commit()

        print(f"✓ Created club '{SEED_CLUB}' ({club_obj.id})")
        print(f"  objective_id: {objective.id}")
        print(f"  organizer X-User-Id: {organizer.id}")


if __name__ == "__main__":
    asyncio.run(seed_club())
