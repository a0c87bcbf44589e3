import pytest

from campuslink.domain.matching.graph import expand_second_degree
from campuslink.domain.matching.models import EdgeStatus, FriendshipStatus, Profile
from campuslink.domain.matching.providers import InMemoryDirectory


class FlakyDirectory(InMemoryDirectory):
	def __init__(self, failing_friends=(), failing_status=()):
		super().__init__()
		self.failing_friends = set(failing_friends)
		self.failing_status = set(failing_status)
		self.friend_calls = []

	async def get_accepted_friends(self, user_id):
		self.friend_calls.append(user_id)
		if user_id in self.failing_friends:
			raise ConnectionError(f"lookup failed for {user_id}")
		return await super().get_accepted_friends(user_id)

	async def get_friend_request_status(self, user_a, user_b):
		if user_b in self.failing_status:
			raise TimeoutError("status store timeout")
		return await super().get_friend_request_status(user_a, user_b)


@pytest.mark.asyncio
async def test_second_degree_candidates_are_deduplicated(friend_graph):
	seed = await friend_graph.get_profile("A")
	expansion = await expand_second_degree(seed, friend_graph)

	assert [c.id for c in expansion.candidates] == ["D", "E"]
	assert expansion.mutual_friend_ids("D") == ["B", "C"]
	assert expansion.mutual_friend_ids("E") == ["C"]
	assert list(expansion.direct_friends) == ["B", "C"]


@pytest.mark.asyncio
async def test_never_yields_seed_direct_friend_pending_or_blocked(friend_graph):
	friend_graph.add_user(Profile(id="F"))
	friend_graph.add_user(Profile(id="G"))
	friend_graph.connect("B", "F")
	friend_graph.connect("C", "G")
	friend_graph.connect("D", "G")
	friend_graph.connect("F", "A", EdgeStatus.PENDING)
	friend_graph.connect("A", "G", EdgeStatus.BLOCKED)
	# B and C are also friends with each other: both reach the other through the graph
	friend_graph.connect("B", "C")

	seed = await friend_graph.get_profile("A")
	expansion = await expand_second_degree(seed, friend_graph)
	ids = {c.id for c in expansion.candidates}

	assert ids == {"D", "E"}
	assert "A" not in ids and "B" not in ids and "C" not in ids
	assert [(p.id, status) for p, status in expansion.pending] == [("F", FriendshipStatus.PENDING_RECEIVED)]
	assert {"A", "B", "C", "F", "G"} <= expansion.excluded


@pytest.mark.asyncio
async def test_pending_sent_is_classified_from_the_seed_side(friend_graph):
	friend_graph.add_user(Profile(id="F"))
	friend_graph.connect("B", "F")
	friend_graph.connect("A", "F", EdgeStatus.PENDING)

	expansion = await expand_second_degree(await friend_graph.get_profile("A"), friend_graph)
	assert [(p.id, status) for p, status in expansion.pending] == [("F", FriendshipStatus.PENDING_SENT)]


@pytest.mark.asyncio
async def test_failed_first_hop_lookup_skips_only_that_branch():
	directory = FlakyDirectory(failing_friends={"B"})
	for uid in "ABCDE":
		directory.add_user(Profile(id=uid))
	directory.connect("A", "B")
	directory.connect("A", "C")
	directory.connect("B", "D")
	directory.connect("C", "E")

	expansion = await expand_second_degree(await directory.get_profile("A"), directory)

	assert [c.id for c in expansion.candidates] == ["E"]
	assert expansion.failed_lookups == ["B"]


@pytest.mark.asyncio
async def test_failed_status_lookup_drops_candidate():
	directory = FlakyDirectory(failing_status={"D"})
	for uid in "ABCDE":
		directory.add_user(Profile(id=uid))
	directory.connect("A", "B")
	directory.connect("B", "D")
	directory.connect("B", "E")

	expansion = await expand_second_degree(await directory.get_profile("A"), directory)

	assert [c.id for c in expansion.candidates] == ["E"]
	assert "D" in expansion.excluded


@pytest.mark.asyncio
async def test_seed_lookup_failure_falls_back_to_profile_friend_ids():
	directory = FlakyDirectory(failing_friends={"A"})
	for uid in "ABD":
		directory.add_user(Profile(id=uid))
	directory.connect("A", "B")
	directory.connect("B", "D")

	seed = await directory.get_profile("A")
	expansion = await expand_second_degree(seed, directory)

	assert [c.id for c in expansion.candidates] == ["D"]
	assert list(expansion.direct_friends) == ["B"]


@pytest.mark.asyncio
async def test_user_without_friends_has_no_candidates():
	directory = InMemoryDirectory()
	directory.add_user(Profile(id="lonely"))
	expansion = await expand_second_degree(await directory.get_profile("lonely"), directory)
	assert expansion.candidates == []
	assert expansion.pending == []
