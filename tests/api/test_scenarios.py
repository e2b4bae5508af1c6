"""
End-to-end catalog walkthroughs over HTTP.
"""


class TestCatalogScenarios:
    """Create, search, update and delete across authors and books."""

    def test_create_search_update_delete(self, client, auth_headers):
        author = client.post(
            "/v1/authors",
            json={"name": "Author Name 1", "birthdate": "2011-11-11T00:00:00Z"},
            headers=auth_headers,
        ).json()["data"]
        assert author["id"] == 1

        book = client.post(
            "/v1/books",
            json={"title": "Book Title 1", "isbn": "978-1451673319", "author_id": author["id"]},
            headers=auth_headers,
        ).json()["data"]
        assert book["id"] == 1
        assert book["author_name"] == "Author Name 1"

        client.post(
            "/v1/books",
            json={"title": "Another Title", "isbn": "978-0000000009", "author_id": author["id"]},
            headers=auth_headers,
        )
        found = client.get("/v1/books", params={"title": "1"}, headers=auth_headers).json()
        assert found["data"] == [book]
        assert found["pagination"]["total_item"] == 1

        changed = client.put("/v1/books/1", json={"title": "Changed"}, headers=auth_headers).json()["data"]
        assert changed["title"] == "Changed"
        assert changed["isbn"] == "978-1451673319"
        assert changed["author_id"] == author["id"]

        assert client.delete("/v1/authors/1", headers=auth_headers).status_code == 200
        response = client.get("/v1/authors/1", headers=auth_headers)
        assert response.status_code == 404
        assert response.json()["error"] == "author not found"

    def test_empty_update_is_a_no_op(self, client, auth_headers):
        author = client.post(
            "/v1/authors",
            json={"name": "Unchanged", "birthdate": "1990-02-03T00:00:00Z"},
            headers=auth_headers,
        ).json()["data"]
        book = client.post(
            "/v1/books",
            json={"title": "Same", "isbn": "978-1111111111", "author_id": author["id"]},
            headers=auth_headers,
        ).json()["data"]

        author_after = client.put(f"/v1/authors/{author['id']}", json={}, headers=auth_headers).json()["data"]
        book_after = client.put(
            f"/v1/books/{book['id']}", json={"title": "", "isbn": ""}, headers=auth_headers
        ).json()["data"]

        assert author_after == author
        assert book_after == book

    def test_ids_are_stable(self, client, auth_headers):
        created = [
            client.post(
                "/v1/authors",
                json={"name": f"Writer {i}", "birthdate": "1970-01-01T00:00:00Z"},
                headers=auth_headers,
            ).json()["data"]
            for i in range(3)
        ]

        for author in created:
            fetched = client.get(f"/v1/authors/{author['id']}", headers=auth_headers).json()["data"]
            assert fetched == author
        assert len({a["id"] for a in created}) == 3
