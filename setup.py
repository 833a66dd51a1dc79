import setuptools

setuptools.setup(
    name="mtg_printing_sync",
    version="0.2",
    author="yochi",
    author_email="pedrogush@gmail.com",
    description="MTG printing resolution: per-card printing preferences kept in sync across views",
    packages=["controllers", "repositories", "services", "utils"],
    classifiers=["Programming Language :: Python :: 3", "Operating System :: OS Independent"],
    python_requires=">=3.11",
    install_requires=[
        "loguru",
        "requests",  # Card data API (Scryfall) client
        "urllib3",  # Retry policy mounted on the requests session
        "pymongo",  # Deck documents written by the deck service
    ],
    extras_require={
        "test": ["pytest"],
    },
)
