"""
Voting contract event relay.

Relays VotingPollCreated, VoteSucceeded and WithdrawSucceeded events
emitted by the EntryPoint contract to the backend HTTP API.
"""

__version__ = "0.1.0"
