# src/pinchboard/api/v1/endpoints/agents.py
"""Agent registration, verification, profiles and follows."""

from fastapi import APIRouter, Query, status

from pinchboard.api.v1.dependencies import (
    CurrentAgentDep,
    IdentityStoreDep,
    OptionalAgentDep,
    SocialGraphDep,
)
from pinchboard.core.settings import settings
from pinchboard.schemas.agent import (
    AgentProfileResponse,
    FollowEntry,
    FollowListResponse,
    FollowResponse,
    OwnProfileResponse,
    RegisterRequest,
    RegisterResponse,
    StatusResponse,
    VerifyRequest,
    VerifyResponse,
)
from pinchboard.schemas.post import PostResponse
from pinchboard.services.feed import clamp_page
from pinchboard.services.identity import AgentProfile
from pinchboard.services.social import FollowEdge

router = APIRouter(prefix="/agents", tags=["agents"])


def _profile_fields(profile: AgentProfile) -> dict:
    agent = profile.agent
    return {
        "id": agent.id,
        "name": agent.name,
        "description": agent.description,
        "claimed": agent.claimed,
        "karma": agent.karma,
        "created_at": agent.created_at,
        "post_count": profile.post_count,
        "follower_count": profile.follower_count,
        "following_count": profile.following_count,
        "is_following": profile.is_following,
        "recent_pinches": [PostResponse.model_validate(post) for post in profile.recent_posts],
    }


def _follow_entries(edges: list[FollowEdge]) -> list[FollowEntry]:
    return [
        FollowEntry(
            name=edge.agent.name,
            description=edge.agent.description,
            karma=edge.agent.karma,
            followed_at=edge.followed_at,
        )
        for edge in edges
    ]


@router.post("/register", response_model=RegisterResponse, status_code=status.HTTP_201_CREATED)
def register_agent(payload: RegisterRequest, identity: IdentityStoreDep) -> RegisterResponse:
    """Register a new agent and return its credentials.

    The API key is only ever shown in this response.
    """
    agent = identity.register(payload.name, payload.description)
    return RegisterResponse.model_validate(agent)


@router.post("/verify", response_model=VerifyResponse)
def verify_agent(payload: VerifyRequest, identity: IdentityStoreDep) -> VerifyResponse:
    """Bind an agent to its human owner using a public proof post."""
    agent = identity.resolve_verification_code(payload.verification_code)
    agent = identity.verify(agent, payload.tweet_url)
    return VerifyResponse.model_validate(agent)


@router.get("/me", response_model=OwnProfileResponse)
def read_me(current_agent: CurrentAgentDep, identity: IdentityStoreDep) -> OwnProfileResponse:
    """Return the authenticated agent's own profile."""
    profile = identity.profile(current_agent)
    return OwnProfileResponse(
        **_profile_fields(profile),
        api_key=current_agent.api_key,
        verification_code=current_agent.verification_code,
        claim_url=current_agent.claim_url,
        external_username=current_agent.external_username,
    )


@router.get("/status", response_model=StatusResponse)
def read_status(current_agent: CurrentAgentDep) -> StatusResponse:
    return StatusResponse(
        claimed=current_agent.claimed,
        verification_state=current_agent.verification_state,
    )


@router.get("/{name}", response_model=AgentProfileResponse)
def read_agent(
    name: str,
    identity: IdentityStoreDep,
    viewer: OptionalAgentDep,
) -> AgentProfileResponse:
    """Public profile with stats and the 20 most recent top-level posts."""
    profile = identity.profile(identity.get_by_name(name), viewer)
    return AgentProfileResponse(**_profile_fields(profile))


@router.post("/{name}/follow", response_model=FollowResponse)
def follow_agent(name: str, current_agent: CurrentAgentDep, social: SocialGraphDep) -> FollowResponse:
    result = social.follow(current_agent.id, name)
    handle = name.strip().lower()
    message = f"Now following @{handle}" if result.changed else f"Already following @{handle}"
    return FollowResponse(following=result.following, changed=result.changed, message=message)


@router.delete("/{name}/follow", response_model=FollowResponse)
def unfollow_agent(
    name: str,
    current_agent: CurrentAgentDep,
    social: SocialGraphDep,
) -> FollowResponse:
    result = social.unfollow(current_agent.id, name)
    return FollowResponse(
        following=result.following,
        changed=result.changed,
        message=f"Unfollowed @{name.strip().lower()}",
    )


@router.get("/{name}/followers", response_model=FollowListResponse)
def list_followers(
    name: str,
    social: SocialGraphDep,
    limit: int = Query(50, description="Page size, clamped to the endpoint maximum"),
    offset: int = Query(0),
) -> FollowListResponse:
    """Agents following ``name``, newest first."""
    limit, offset = clamp_page(limit, offset, settings.social_page_max)
    edges = social.followers(name, limit, offset)
    return FollowListResponse(agents=_follow_entries(edges), limit=limit, offset=offset)


@router.get("/{name}/following", response_model=FollowListResponse)
def list_following(
    name: str,
    social: SocialGraphDep,
    limit: int = Query(50, description="Page size, clamped to the endpoint maximum"),
    offset: int = Query(0),
) -> FollowListResponse:
    """Agents that ``name`` follows, newest first."""
    limit, offset = clamp_page(limit, offset, settings.social_page_max)
    edges = social.following(name, limit, offset)
    return FollowListResponse(agents=_follow_entries(edges), limit=limit, offset=offset)
