class Roles:
    """Noms des groupes Django portant les rôles du portail."""
    ADMINISTRATOR = 'Administrator'
    AGENT = 'Agent'
    CLIENT = 'Client'

    ADMIN_ET_AGENT = (ADMINISTRATOR, AGENT)
    TOUS = (ADMINISTRATOR, AGENT, CLIENT)
