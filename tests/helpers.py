from lightsout.data_models.scoring import PointsCatalog, SelectionRecord


def picks(a_teams=(), b_team=None, a_drivers=(), b_drivers=(), fastest_lap=None, penalty=None):
    """SelectionRecord from short positional lists, padded to the slot layout."""
    return SelectionRecord.from_dict({
        'aTeams': list(a_teams),
        'bTeam': b_team,
        'aDrivers': list(a_drivers),
        'bDrivers': list(b_drivers),
        'fastestLap': fastest_lap,
        'penalty': penalty,
    })


def gp_only_catalog(grand_prix_finish, fastest_lap=0) -> PointsCatalog:
    return PointsCatalog(
        grand_prix_finish=tuple(grand_prix_finish),
        sprint_finish=(),
        gp_qualifying=(),
        sprint_qualifying=(),
        fastest_lap=fastest_lap,
    )
