"""
PSGC lookup tests
"""
import pytest

from services.location.psgc import (
    get_regions,
    get_provinces_by_region,
    get_cities_by_province,
    get_barangays_by_city,
    get_region_by_id,
    get_barangay_by_id,
)


class TestLookups:

    def test_regions(self):
        names = [r['name'] for r in get_regions()]
        assert 'NCR' in names
        assert len(names) == 4

    def test_hierarchy_filters(self):
        assert {p['prov_id'] for p in get_provinces_by_region(1)} == {1, 2}
        assert {c['name'] for c in get_cities_by_province(3)} == {'City of Laoag', 'City of Batac'}
        assert {b['brgy_id'] for b in get_barangays_by_city(3)} == {5, 6}

    def test_unknown_ids(self):
        assert get_provinces_by_region(999) == []
        assert get_region_by_id(999) is None
        assert get_barangay_by_id(999) is None

    def test_results_are_copies(self):
        get_regions().clear()
        assert len(get_regions()) == 4


class TestLocationRoutes:

    def test_regions(self, client):
        response = client.get('/api/locations/regions')

        assert response.status_code == 200
        assert len(response.json()) == 4

    def test_provinces(self, client):
        data = client.get('/api/locations/regions/2/provinces').json()

        assert {p['name'] for p in data} == {'Ilocos Norte', 'Pangasinan'}

    def test_cities_and_barangays(self, client):
        cities = client.get('/api/locations/provinces/3/cities').json()
        barangays = client.get('/api/locations/cities/3/barangays').json()

        assert len(cities) == 2
        assert all(b['city_id'] == 3 for b in barangays)

    @pytest.mark.parametrize('path', [
        '/api/locations/regions/999/provinces',
        '/api/locations/provinces/999/cities',
        '/api/locations/cities/999/barangays',
    ])
    def test_unknown_parent(self, client, path):
        assert client.get(path).status_code == 404
