import pytest

from tests.unit.uv_test_utils.gen_test_uvdata import gen_test_uvdata


@pytest.fixture
def uvd_drift():
    """A complete drift scan UVData, unphased zenith catalog"""
    return gen_test_uvdata("drift")


@pytest.fixture
def uvd_multi():
    """A complete UVData with two phase centers"""
    return gen_test_uvdata("multi")


@pytest.fixture(params=["drift", "phased", "ephem", "multi"])
def uvd_any_catalog(request):
    """A complete UVData for each phase center catalog layout"""
    return gen_test_uvdata(request.param)
