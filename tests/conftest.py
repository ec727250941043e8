import copy
import os
import sys

import pytest

from cohortkit import ExperimentProvider, InMemoryAssignmentStore, InMemoryConfigChannel

DEFAULT_EXPERIMENTS = {
    "foo": {
        "name": "Foo Test",
        "active": True,
        "description": "A test about foo",
        "control": {
            "value": False,
            "description": "Foo is 42 by default",
        },
        "variant": {
            "id": "foo_01",
            "value": True,
            "threshold": 0.5,
            "description": "Twice the foo",
        },
    }
}


@pytest.fixture
def default_experiments():
    return copy.deepcopy(DEFAULT_EXPERIMENTS)


@pytest.fixture
def store():
    return InMemoryAssignmentStore()


@pytest.fixture
def channel():
    return InMemoryConfigChannel()


@pytest.fixture
def make_provider(store, channel, default_experiments):
    """Build and init providers sharing one store and channel, like restarts of one profile."""
    providers = []

    def factory(experiments=None, n=None, **kwargs):
        if n is not None:
            kwargs.setdefault("rng", lambda: n)
        provider = ExperimentProvider(
            experiments if experiments is not None else default_experiments,
            store=store,
            channel=channel,
            **kwargs
        )
        providers.append(provider)
        provider.init()
        return provider

    yield factory

    for provider in providers:
        provider.destroy()


# Add project root to Python path
sys.path.append(os.path.dirname(os.path.dirname(os.path.abspath(__file__))))
