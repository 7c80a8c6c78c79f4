"""
First-boot fixtures: the admin account and a demo catalog.

Both are idempotent. The admin is created only when the username is unknown;
sample events/riders are only added to an empty catalog.
"""
import logging

logger = logging.getLogger(__name__)

SAMPLE_VIDEO = (
    "https://storage.googleapis.com/gtv-videos-bucket/sample/BigBuckBunny.mp4"
)

_UNSPLASH = "https://images.unsplash.com/photo-{}?ixlib=rb-4.0.3&auto=format&fit=crop&w=1000&q=80"

SAMPLE_EVENTS = [
    ("Texas Barrel Racing Championship", "June 15-17, 2023",
     _UNSPLASH.format("1609626046544-66a356133387")),
    ("Oklahoma Summer Barrel Classic", "July 8-10, 2023",
     _UNSPLASH.format("1575550959106-5a7defe28b56")),
    ("Wyoming Barrel Racing Showdown", "August 5-7, 2023",
     _UNSPLASH.format("1529833981184-35f8dd0a4df5")),
    ("Montana State Barrel Racing", "August 19-21, 2023",
     _UNSPLASH.format("1580759028677-3d743a37113a")),
    ("Colorado Barrel Racing Festival", "September 2-4, 2023",
     _UNSPLASH.format("1551143826-b99555ecad74")),
    ("Arizona Fall Barrel Championship", "October 14-16, 2023",
     _UNSPLASH.format("1520244526258-daadec968c4c")),
]

SAMPLE_RIDER_IMAGES = [
    _UNSPLASH.format(p) for p in (
        "1581375221876-8dbd773689c5", "1558591710-4b4a1ae0f04d",
        "1579202002179-8604d8c63ef5", "1532272029390-4f16fa56ca93",
        "1512073490563-2fca097a4dea", "1561045377-52d3c5db0359",
        "1548963607-e4ddf7d668ba", "1583771250139-b1d9458f866d",
        "1536844891345-c6e3f7457348", "1564697284179-980a11572e2e",
    )
]

SAMPLE_RIDER_NAMES = [
    "Jessica Smith", "Michael Johnson", "Sarah Williams", "Emma Davis",
    "David Miller", "Ashley Brown", "Thomas Wilson", "Rebecca Martinez",
    "James Taylor", "Sophia Anderson",
]

RIDERS_PER_EVENT = 5


async def ensure_admin(accounts, username: str, password: str):
    if await accounts.get_by_username(username) is not None:
        return None
    user = await accounts.create_admin(username, password)
    logger.info("created admin user %r", username)
    return user


async def seed_sample_data(catalog) -> int:
    """Populate an empty catalog. Returns the number of riders created."""
    if await catalog.list_events():
        return 0

    logger.info("initializing sample data...")
    created = 0
    for ev_idx, (name, date, thumb) in enumerate(SAMPLE_EVENTS):
        ev = await catalog.create_event(name=name, date=date,
                                        thumbnail_url=thumb)
        for i in range(RIDERS_PER_EVENT):
            n = ev_idx * RIDERS_PER_EVENT + i
            rider_name = (SAMPLE_RIDER_NAMES[n] if n < len(SAMPLE_RIDER_NAMES)
                          else f"Rider {n + 1}")
            await catalog.create_rider(
                event_id=ev.id,
                name=rider_name,
                price=80,
                thumbnail_url=SAMPLE_RIDER_IMAGES[n % len(SAMPLE_RIDER_IMAGES)],
                video_url=SAMPLE_VIDEO,
            )
            created += 1
    logger.info("sample data initialized: %d events, %d riders",
                len(SAMPLE_EVENTS), created)
    return created
