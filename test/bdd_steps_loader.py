"""
Gherkin step registry

pytest-bdd resolves Given/When/Then steps as fixtures, so they are star-imported
into conftest.py through this module. Feature files live under
test/service/commerce/integration/features/.
"""

from test.service.commerce.integration.steps.redemption.given import *  # noqa: E402, F403
from test.service.commerce.integration.steps.redemption.then import *  # noqa: E402, F403
from test.service.commerce.integration.steps.redemption.when import *  # noqa: E402, F403
