import os
import sys
import django
import random
from datetime import timedelta
from django.utils import timezone
from faker import Faker

# Add project root to Python path
sys.path.append(os.path.dirname(os.path.dirname(os.path.abspath(__file__))))

# Set up Django environment
os.environ.setdefault('DJANGO_SETTINGS_MODULE', 'coach_exchange.settings')
django.setup()

from core.models import (
    User, Listing, ListingPhoto, Conversation, Message, SavedCoach
)

fake = Faker()

CONVERTERS = [
    "Marathon", "Liberty", "Featherlite", "Emerald", "Millennium", "Parliament"
]
MODELS = ["H3-45", "X3-45", "H3-45 VIP"]
COLORS = ["Black Pearl", "Champagne", "Graphite", "Silver Mist", "Midnight Blue"]
TAGS = ["", "", "Featured", "New Arrival", "Price Reduced"]


def create_users(num_buyers=10, num_sellers=5):
    print(f"Creating {num_buyers} buyers and {num_sellers} sellers...")

    buyers = []
    sellers = []

    for _ in range(num_buyers):
        user = User.objects.create_user(
            email=fake.unique.email(),
            password='password123',
            name=fake.name(),
            role='buyer'
        )
        buyers.append(user)

    for _ in range(num_sellers):
        user = User.objects.create_user(
            email=fake.unique.email(),
            password='password123',
            name=fake.name(),
            phone=fake.numerify('(###) ###-####'),
            role=random.choice(['seller', 'both'])
        )
        sellers.append(user)

    # Roughly half the sellers have unlocked messaging
    paid_ids = [s.pk for s in sellers if random.random() < 0.5]
    User.objects.filter(pk__in=paid_ids).update(
        paid=True,
        paid_at=timezone.now() - timedelta(days=random.randint(1, 60)),
        stripe_payment_id=f"pi_seed_{fake.lexify('????????')}"
    )

    print(f"Created {len(buyers)} buyers and {len(sellers)} sellers ({len(paid_ids)} paid).")
    return buyers, sellers


def create_listings(sellers):
    print("Creating listings...")
    listings = []

    this_year = timezone.now().year

    for seller in sellers:
        # Each seller lists 1-3 coaches
        for _ in range(random.randint(1, 3)):
            price = random.choice([0, random.randrange(450000, 2500000, 5000)])
            listing = Listing.objects.create(
                seller=seller,
                year=random.randint(this_year - 15, this_year),
                model=random.choice(MODELS),
                converter=random.choice(CONVERTERS),
                num=f"#{random.randint(100, 999)}",
                price=price,
                price_display=f"${price:,}" if price else "Call for Price",
                mileage=f"{random.randint(5, 250) * 1000:,} mi",
                slides=random.choice(["Double Slide", "Triple Slide", "Quad Slide"]),
                color=random.choice(COLORS),
                description=fake.paragraph(nb_sentences=5),
                tag=random.choice(TAGS),
                status=random.choice(['active', 'active', 'active', 'pending', 'sold'])
            )
            ListingPhoto.objects.bulk_create([
                ListingPhoto(
                    listing=listing,
                    url=f"https://picsum.photos/seed/{listing.pk}-{index}/1200/800",
                    sort_order=index
                )
                for index in range(random.randint(1, 4))
            ])
            listings.append(listing)

    print(f"Created {len(listings)} listings.")
    return listings


def create_conversations(buyers, listings):
    print("Creating conversations...")
    conversations = []
    messages = 0

    for buyer in buyers:
        # Each buyer asks about 0-3 coaches
        for listing in random.sample(listings, min(len(listings), random.randint(0, 3))):
            conversation = Conversation.objects.create(
                listing=listing,
                buyer=buyer,
                seller=listing.seller
            )
            conversations.append(conversation)

            Message.objects.create(
                conversation=conversation,
                sender=buyer,
                text=f"Hi, is the {listing.year} {listing.converter} still available? {fake.sentence()}"
            )
            messages += 1

            # Only sellers who paid can reply
            listing.seller.refresh_from_db(fields=['paid'])
            if listing.seller.paid and random.random() < 0.6:
                Message.objects.create(
                    conversation=conversation,
                    sender=listing.seller,
                    text=fake.paragraph(nb_sentences=2),
                    read=random.choice([True, False])
                )
                messages += 1

    print(f"Created {len(conversations)} conversations with {messages} messages.")
    return conversations


def create_saved_coaches(buyers, listings):
    print("Creating saved coaches...")
    saved = 0

    for buyer in buyers:
        for listing in random.sample(listings, min(len(listings), random.randint(0, 4))):
            SavedCoach.objects.get_or_create(user=buyer, listing=listing)
            saved += 1

    print(f"Created {saved} saved coaches.")


def main():
    print("Starting database population...")

    # Create Users
    buyers, sellers = create_users(num_buyers=20, num_sellers=8)

    # Create Listings
    listings = create_listings(sellers)

    # Create Conversations
    create_conversations(buyers, listings)

    # Create Saved Coaches
    create_saved_coaches(buyers, listings)

    print("Database population completed successfully!")

if __name__ == '__main__':
    main()
