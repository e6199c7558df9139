from gas_suggestion_api.tests.fixtures.node_client import *  # noqa: F401, F403
