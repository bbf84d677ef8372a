"""Services Layer — owning collaborators that host GuildMember entities.
"""
