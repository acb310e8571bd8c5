import allure
from click.testing import CliRunner

from tweet_digest import __version__
from tweet_digest.main import tweet_digest

pytestmark = [
    allure.epic("Dashboard CLI"),
    allure.feature("Tasks, Jobs and Tags Commands"),
]


def test_version():
    assert __version__


def test_version_option():
    runner = CliRunner()
    result = runner.invoke(tweet_digest, ["--version"])
    assert result.exit_code == 0
    assert __version__ in result.output
