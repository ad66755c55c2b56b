class TestTagEndpoints:
    def test_list_tags_for_business(
        self, client, auth_headers, business, other_business, make_tag
    ):
        make_tag(business, "VIP")
        make_tag(business, "Audit")
        make_tag(other_business, "Theirs")
        resp = client.get("/tags", headers=auth_headers)
        assert resp.status_code == 200
        assert [t["name"] for t in resp.json()] == ["Audit", "VIP"]

    def test_unauthenticated_request(self, client):
        resp = client.get("/tags")
        assert resp.status_code in (401, 403)


class TestAmbientEndpoints:
    def test_health(self, client):
        assert client.get("/health").json() == {"status": "ok"}

    def test_metrics(self, client):
        resp = client.get("/metrics")
        assert resp.status_code == 200
        assert "checklist_toggles_total" in resp.text
