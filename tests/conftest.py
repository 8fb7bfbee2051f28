"""Pytest configuration and shared fixtures for Code City tests."""

from datetime import datetime, timedelta, timezone

import pytest

from codecity import (
    CityConfig,
    CityData,
    ClassRecord,
    GitMetadata,
    PackageRecord,
    compute_layout,
)

NOW = datetime(2025, 1, 15, 12, 0, tzinfo=timezone.utc)


@pytest.fixture
def now():
    """Fixed reference time for age-dependent assertions."""
    return NOW


@pytest.fixture
def config():
    """Default CityConfig instance."""
    return CityConfig()


@pytest.fixture
def simple_data():
    """One package with two classes and no git metadata."""
    return CityData(
        packages=(
            PackageRecord(
                name="a.b",
                classes=(
                    ClassRecord(name="X", lines_of_code=150),
                    ClassRecord(name="Y", lines_of_code=85),
                ),
            ),
        )
    )


@pytest.fixture
def git_data():
    """Two packages with git metadata of different ages and frequencies."""
    return CityData(
        packages=(
            PackageRecord(
                name="com.example.core",
                classes=(
                    ClassRecord(
                        "Engine",
                        400,
                        GitMetadata(commits=45, authors=4, last_modified=NOW),
                    ),
                    ClassRecord(
                        "LegacyParser",
                        220,
                        GitMetadata(
                            commits=3,
                            authors=1,
                            last_modified=NOW - timedelta(days=400),
                        ),
                    ),
                    ClassRecord("Config", 40),
                ),
            ),
            PackageRecord(
                name="com.example.util",
                classes=(
                    ClassRecord(
                        "Strings",
                        90,
                        GitMetadata(
                            commits=12,
                            authors=2,
                            last_modified=NOW - timedelta(days=30),
                        ),
                    ),
                ),
            ),
        )
    )


@pytest.fixture
def simple_layout(simple_data):
    """Quadrant layout of simple_data."""
    return compute_layout(simple_data, "quadrant")


@pytest.fixture
def snapshot_json():
    """A snapshot document as the extractor writes it."""
    return {
        "packages": [
            {
                "name": "com.example.core",
                "classes": [
                    {
                        "name": "Engine",
                        "linesOfCode": 400,
                        "gitMetadata": {
                            "commits": 45,
                            "authors": 4,
                            "lastModified": "2025-01-15T12:00:00Z",
                        },
                    },
                    {"name": "Config", "linesOfCode": 40},
                ],
            },
            {
                "name": "com.example.util",
                "classes": [{"name": "Strings", "linesOfCode": 90}],
            },
        ]
    }
