"""
API tests for the comment controller.
"""

import uuid

import pytest
from fastapi import status
from httpx import AsyncClient


class TestCreateComment:
    """Test cases for POST /api/comments/issue/{issue_id}."""

    @pytest.mark.asyncio
    async def test_create_comment(self, client: AsyncClient, test_user, test_issue, auth_headers_2):
        """Any authenticated user may comment; content is trimmed."""
        response = await client.post(
            f"/api/comments/issue/{test_issue.id}",
            json={"content": "  Reproduced on staging  "},
            headers=auth_headers_2,
        )

        assert response.status_code == status.HTTP_201_CREATED
        comment = response.json()["data"]["comment"]
        assert comment["content"] == "Reproduced on staging"
        assert comment["issueId"] == str(test_issue.id)
        assert comment["author"]["firstName"] == "Bob"

        issue = await client.get(f"/api/issues/{test_issue.id}", headers=auth_headers_2)
        assert issue.json()["data"]["issue"]["commentCount"] == 1

    @pytest.mark.asyncio
    async def test_create_comment_missing_issue(self, client: AsyncClient, auth_headers):
        """Commenting on an unknown issue is a 404."""
        response = await client.post(
            f"/api/comments/issue/{uuid.uuid4()}", json={"content": "hello"}, headers=auth_headers
        )

        assert response.status_code == status.HTTP_404_NOT_FOUND
        assert response.json()["error"]["message"] == "Issue not found"

    @pytest.mark.asyncio
    async def test_create_comment_blank(self, client: AsyncClient, test_issue, auth_headers):
        """Whitespace-only comments are rejected."""
        response = await client.post(
            f"/api/comments/issue/{test_issue.id}", json={"content": "   "}, headers=auth_headers
        )

        assert response.status_code == status.HTTP_400_BAD_REQUEST

    @pytest.mark.asyncio
    async def test_create_comment_too_long(self, client: AsyncClient, test_issue, auth_headers):
        """Comments are capped at 1000 characters."""
        response = await client.post(
            f"/api/comments/issue/{test_issue.id}",
            json={"content": "x" * 1001},
            headers=auth_headers,
        )

        assert response.status_code == status.HTTP_400_BAD_REQUEST


class TestListComments:
    """Test cases for the comment listings."""

    @pytest.mark.asyncio
    async def test_comments_for_issue_paginated(
        self, client: AsyncClient, test_user, test_issue, make_comment, auth_headers
    ):
        """Comments on an issue are newest first with a pagination block."""
        for i in range(3):
            await make_comment(test_issue, test_user, content=f"c{i}")

        response = await client.get(
            f"/api/comments/issue/{test_issue.id}?limit=2", headers=auth_headers
        )

        body = response.json()
        assert [c["content"] for c in body["data"]["comments"]] == ["c2", "c1"]
        assert body["pagination"]["total"] == 3
        assert body["pagination"]["hasNext"] is True

    @pytest.mark.asyncio
    async def test_comment_limit_capped_at_50(self, client: AsyncClient, test_issue, auth_headers):
        """Comment pages hold at most 50 entries."""
        response = await client.get(
            f"/api/comments/issue/{test_issue.id}?limit=51", headers=auth_headers
        )

        assert response.status_code == status.HTTP_400_BAD_REQUEST

    @pytest.mark.asyncio
    async def test_my_comments(
        self,
        client: AsyncClient,
        test_user,
        test_user_2,
        test_issue,
        make_comment,
        auth_headers_2,
    ):
        """my-comments lists only the caller's comments with the issue title."""
        await make_comment(test_issue, test_user, content="mine? no")
        await make_comment(test_issue, test_user_2, content="bob's")

        response = await client.get("/api/comments/my-comments", headers=auth_headers_2)

        comments = response.json()["data"]["comments"]
        assert [c["content"] for c in comments] == ["bob's"]
        assert comments[0]["issue"]["title"] == test_issue.title

    @pytest.mark.asyncio
    async def test_recent_comments(
        self, client: AsyncClient, test_user, make_issue, make_comment, auth_headers
    ):
        """Recent comments span all issues and respect the limit."""
        first = await make_issue(test_user, title="one")
        second = await make_issue(test_user, title="two")
        await make_comment(first, test_user, content="old")
        await make_comment(second, test_user, content="newer")
        await make_comment(first, test_user, content="newest")

        response = await client.get("/api/comments/recent?limit=2", headers=auth_headers)

        comments = response.json()["data"]["comments"]
        assert [c["content"] for c in comments] == ["newest", "newer"]
        assert comments[1]["issue"]["title"] == "two"


class TestModifyComment:
    """Test cases for GET/PUT/DELETE /api/comments/{id}."""

    @pytest.mark.asyncio
    async def test_get_comment(
        self, client: AsyncClient, test_user, test_issue, make_comment, auth_headers
    ):
        """A single comment includes its author and issue title."""
        comment = await make_comment(test_issue, test_user)

        response = await client.get(f"/api/comments/{comment.id}", headers=auth_headers)

        data = response.json()["data"]["comment"]
        assert data["author"]["id"] == str(test_user.id)
        assert data["issue"] == {
            "id": str(test_issue.id),
            "title": test_issue.title,
            "status": "pending",
        }

    @pytest.mark.asyncio
    async def test_author_edits(
        self, client: AsyncClient, test_user, test_issue, make_comment, auth_headers
    ):
        """The author can edit a comment."""
        comment = await make_comment(test_issue, test_user)

        response = await client.put(
            f"/api/comments/{comment.id}", json={"content": "edited"}, headers=auth_headers
        )

        assert response.status_code == status.HTTP_200_OK
        assert response.json()["data"]["comment"]["content"] == "edited"

    @pytest.mark.asyncio
    async def test_issue_creator_cannot_edit_others_comment(
        self, client: AsyncClient, test_user_2, test_issue, make_comment, auth_headers
    ):
        """Even the issue creator cannot edit someone else's comment."""
        comment = await make_comment(test_issue, test_user_2)

        response = await client.put(
            f"/api/comments/{comment.id}", json={"content": "edited"}, headers=auth_headers
        )

        assert response.status_code == status.HTTP_403_FORBIDDEN

    @pytest.mark.asyncio
    async def test_issue_creator_deletes_others_comment(
        self, client: AsyncClient, test_user_2, test_issue, make_comment, auth_headers
    ):
        """The issue creator can delete any comment on the issue."""
        comment = await make_comment(test_issue, test_user_2)

        response = await client.delete(f"/api/comments/{comment.id}", headers=auth_headers)

        assert response.status_code == status.HTTP_200_OK
        missing = await client.get(f"/api/comments/{comment.id}", headers=auth_headers)
        assert missing.status_code == status.HTTP_404_NOT_FOUND
        issue = await client.get(f"/api/issues/{test_issue.id}", headers=auth_headers)
        assert issue.json()["data"]["issue"]["commentCount"] == 0

    @pytest.mark.asyncio
    async def test_stranger_cannot_delete(
        self, client: AsyncClient, make_user, test_user, test_issue, make_comment, auth_headers_for
    ):
        """Neither author nor issue creator gets 403 on delete."""
        comment = await make_comment(test_issue, test_user)
        stranger = await make_user()

        response = await client.delete(
            f"/api/comments/{comment.id}", headers=auth_headers_for(stranger)
        )

        assert response.status_code == status.HTTP_403_FORBIDDEN

    @pytest.mark.asyncio
    async def test_delete_missing_comment(self, client: AsyncClient, auth_headers):
        """Deleting an unknown comment is a 404."""
        response = await client.delete(f"/api/comments/{uuid.uuid4()}", headers=auth_headers)

        assert response.status_code == status.HTTP_404_NOT_FOUND
        assert response.json()["error"]["message"] == "Comment not found"
