"""
Tests for the client-owned agent registry.
"""
import pytest
from fastapi import status

from portal.models import Agent, Message, MessageStatus

API = "/api/v1"


@pytest.mark.unit
class TestCreateAgent:

    def test_create_agent(self, client, client_auth_headers, client_user):
        response = client.post(
            f"{API}/agents",
            json={"name": "Sales Bot", "description": "Qualifies leads", "webhook_url": "https://n8n.test/webhook/1"},
            headers=client_auth_headers,
        )
        assert response.status_code == status.HTTP_201_CREATED
        data = response.json()
        assert data["name"] == "Sales Bot"
        assert data["client_id"] == client_user.id
        assert data["is_active"] is True

    def test_create_without_webhook(self, client, client_auth_headers):
        response = client.post(f"{API}/agents", json={"name": "Draft"}, headers=client_auth_headers)
        assert response.status_code == status.HTTP_201_CREATED
        assert response.json()["webhook_url"] is None

    def test_name_required(self, client, client_auth_headers):
        response = client.post(f"{API}/agents", json={"description": "no name"}, headers=client_auth_headers)
        assert response.status_code == status.HTTP_400_BAD_REQUEST

    def test_blank_name_rejected(self, client, client_auth_headers):
        response = client.post(f"{API}/agents", json={"name": "   "}, headers=client_auth_headers)
        assert response.status_code == status.HTTP_400_BAD_REQUEST

    def test_relative_webhook_rejected(self, client, client_auth_headers):
        response = client.post(
            f"{API}/agents",
            json={"name": "Bot", "webhook_url": "/webhook/1"},
            headers=client_auth_headers,
        )
        assert response.status_code == status.HTTP_400_BAD_REQUEST

    def test_admin_cannot_create_agents(self, client, auth_headers):
        response = client.post(f"{API}/agents", json={"name": "Bot"}, headers=auth_headers)
        assert response.status_code == status.HTTP_403_FORBIDDEN


@pytest.mark.unit
class TestListAgents:

    def test_lists_only_own_agents_newest_first(
        self, client, client_auth_headers, agent, unconfigured_agent, foreign_agent
    ):
        response = client.get(f"{API}/agents", headers=client_auth_headers)
        assert response.status_code == status.HTTP_200_OK
        ids = [a["id"] for a in response.json()]
        assert ids == [unconfigured_agent.id, agent.id]
        assert foreign_agent.id not in ids

    def test_get_own_agent(self, client, client_auth_headers, agent):
        response = client.get(f"{API}/agents/{agent.id}", headers=client_auth_headers)
        assert response.status_code == status.HTTP_200_OK
        assert response.json()["name"] == "Support Bot"

    def test_foreign_agent_is_not_found(self, client, client_auth_headers, foreign_agent):
        response = client.get(f"{API}/agents/{foreign_agent.id}", headers=client_auth_headers)
        assert response.status_code == status.HTTP_404_NOT_FOUND
        assert response.json()["message"] == "Agent not found"


@pytest.mark.unit
class TestUpdateAgent:

    def test_partial_update(self, client, client_auth_headers, agent):
        response = client.put(
            f"{API}/agents/{agent.id}",
            json={"is_active": False},
            headers=client_auth_headers,
        )
        assert response.status_code == status.HTTP_200_OK
        data = response.json()
        assert data["is_active"] is False
        assert data["name"] == "Support Bot"
        assert data["webhook_url"] == "http://agent.test/hook"

    def test_update_webhook_and_description(self, client, client_auth_headers, unconfigured_agent):
        response = client.put(
            f"{API}/agents/{unconfigured_agent.id}",
            json={"webhook_url": "https://n8n.test/webhook/2", "description": "Now live"},
            headers=client_auth_headers,
        )
        assert response.status_code == status.HTTP_200_OK
        assert response.json()["webhook_url"] == "https://n8n.test/webhook/2"
        assert response.json()["description"] == "Now live"

    def test_update_foreign_agent(self, client, db_session, client_auth_headers, foreign_agent):
        response = client.put(
            f"{API}/agents/{foreign_agent.id}",
            json={"name": "Hijacked"},
            headers=client_auth_headers,
        )
        assert response.status_code == status.HTTP_404_NOT_FOUND
        db_session.expire_all()
        assert db_session.get(Agent, foreign_agent.id).name == "Globex Bot"


@pytest.mark.integration
class TestDeleteAgent:

    def test_delete_cascades_messages(self, client, db_session, client_auth_headers, client_user, agent):
        db_session.add(Message(
            client_id=client_user.id, agent_id=agent.id, message="hi", status=MessageStatus.PENDING,
        ))
        db_session.commit()
        agent_id = agent.id

        response = client.delete(f"{API}/agents/{agent_id}", headers=client_auth_headers)
        assert response.status_code == status.HTTP_200_OK
        assert response.json()["message"] == "Agent deleted successfully"

        db_session.expire_all()
        assert db_session.get(Agent, agent_id) is None
        assert db_session.query(Message).filter(Message.agent_id == agent_id).count() == 0

    def test_delete_foreign_agent(self, client, client_auth_headers, foreign_agent):
        response = client.delete(f"{API}/agents/{foreign_agent.id}", headers=client_auth_headers)
        assert response.status_code == status.HTTP_404_NOT_FOUND
