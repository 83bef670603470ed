"""TokenizedVoting deployment: create the contract, then open voting."""

from ..graph.module import ModuleBuilder, build_module

MODULE_ID = "VotingModule"


def define_voting(m: ModuleBuilder) -> dict:
    election_name = m.get_parameter("electionName", "Election 2024")
    category_names = m.get_parameter("categoryNames", ["Best Developer", "Best Designer"])
    candidates = m.get_parameter("candidates", [["Alice", "Bob"], ["Charlie", "Dave"]])

    tokenized_voting = m.contract("TokenizedVoting", [election_name, category_names, candidates])

    m.call(tokenized_voting, "startVoting", [])

    return {"tokenizedVoting": tokenized_voting}


voting_module = build_module(MODULE_ID, define_voting)
