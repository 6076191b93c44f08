"""Unit tests for functions defined in metrics/utils.py"""

from pytest_mock import MockerFixture

from metrics.utils import update_credential_metrics
from tests.unit.utils.gateway_helpers import make_credential


def test_update_credential_metrics(mocker: MockerFixture):
    """Gauge is set for every status."""
    mock_metric = mocker.patch("metrics.credentials_total")
    store = mocker.Mock()
    store.list_all.return_value = [
        make_credential("c1"),
        make_credential("c2"),
        make_credential("c3", status="dead"),
    ]

    update_credential_metrics(store)

    mock_metric.labels.assert_any_call("alive")
    mock_metric.labels.assert_any_call("dead")
    set_calls = [call.args[0] for call in mock_metric.labels.return_value.set.call_args_list]
    assert sorted(set_calls) == [1, 2]


def test_update_credential_metrics_empty_store(mocker: MockerFixture):
    """Statuses without credentials are reported as zero."""
    mock_metric = mocker.patch("metrics.credentials_total")
    store = mocker.Mock()
    store.list_all.return_value = []

    update_credential_metrics(store)

    assert mock_metric.labels.call_count == 2
    mock_metric.labels.return_value.set.assert_called_with(0)
