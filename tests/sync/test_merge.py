"""Tests for the graph merger."""

from flowsync.graph import ChangeAction, Journey, StepCategory, WorkflowGraph
from flowsync.sync.merge import AUTO_DESCRIPTION, PlacementRules, merge
from flowsync.sync.parse import NavEdge, StructuralDescriptor, parse_source_file
from flowsync.sync.scan import FileStatus, ScanResult, TrackedFile
from flowsync.sync.validate import validate
from tests.helpers import HOME_VIEW, WELCOME_VIEW, make_step


def added(path, content):
    return TrackedFile(path=path, status=FileStatus.ADDED, content=content)


def modified(path, content):
    return TrackedFile(path=path, status=FileStatus.MODIFIED, content=content)


def removed(path):
    return TrackedFile(path=path, status=FileStatus.REMOVED)


def descriptor(path, entity, targets=(), category=StepCategory.DISPLAY):
    return StructuralDescriptor(
        entity_name=entity,
        path=path,
        edges=tuple(NavEdge(t, "navigationLink") for t in targets),
        category=category,
    )


class TestAddedFiles:
    """New view files become new steps."""

    def test_first_view_lands_in_unassigned(self):
        path = "App/WelcomeView.swift"
        scan_result = ScanResult("c1", added=[added(path, WELCOME_VIEW)])
        desc = parse_source_file(path, WELCOME_VIEW)

        result = merge(WorkflowGraph.empty(), scan_result, [desc])

        assert len(result.graph.journeys) == 1
        journey = result.graph.journeys[0]
        assert journey.id == "unassigned"
        assert journey.name == "Unassigned"
        assert journey.description == AUTO_DESCRIPTION

        step = journey.steps[0]
        assert step.id == "welcome-view"
        assert step.label == "TODO: WelcomeView"
        assert step.screen == "WelcomeView"
        assert step.category == "display"
        assert step.source_file == path
        assert step.next_ids == []
        assert step.needs_review is True

        assert result.review_count == 1
        assert len(result.changes) == 1
        change = result.changes[0]
        assert change.action == ChangeAction.ADD.value
        assert (change.journey_id, change.step_id) == ("unassigned", "welcome-view")

    def test_file_without_descriptor_is_ignored(self):
        scan_result = ScanResult("c1", added=[added("App/Model.swift", "enum A {}")])

        result = merge(WorkflowGraph.empty(), scan_result, [])

        assert result.graph.journeys == []
        assert result.changes == []

    def test_redelivered_file_is_not_added_twice(self, onboarding_graph):
        """A file already tracked by a step is skipped, e.g. after a crash."""
        path = "App/WelcomeView.swift"
        scan_result = ScanResult("c2", added=[added(path, WELCOME_VIEW)])

        result = merge(onboarding_graph, scan_result, [parse_source_file(path, WELCOME_VIEW)])

        assert result.changes == []
        assert result.graph.to_dict() == onboarding_graph.to_dict()

    def test_prefix_rule_places_step(self):
        rules = PlacementRules.from_mapping({"App/Settings/": "settings"})
        path = "App/Settings/PrivacyView.swift"
        scan_result = ScanResult("c1", added=[added(path, "")])

        result = merge(
            WorkflowGraph.empty(), scan_result, [descriptor(path, "PrivacyView")], rules
        )

        assert [j.id for j in result.graph.journeys] == ["settings"]
        assert result.graph.journeys[0].name == "Settings"

    def test_first_matching_prefix_wins(self):
        rules = PlacementRules.from_mapping({"App/": "app", "App/Settings/": "settings"})

        assert rules.journey_for_path("App/Settings/PrivacyView.swift") == "app"
        assert rules.journey_for_path("Other/View.swift") is None

    def test_placed_next_to_step_that_now_links_to_it(self, onboarding_graph):
        """A file re-parsed this cycle that navigates to the new view claims it."""
        new_path = "App/SettingsView.swift"
        home_path = "App/HomeView.swift"
        scan_result = ScanResult(
            "c2",
            added=[added(new_path, "")],
            modified=[modified(home_path, HOME_VIEW)],
        )
        descriptors = [
            descriptor(new_path, "SettingsView"),
            parse_source_file(home_path, HOME_VIEW),
        ]

        result = merge(onboarding_graph, scan_result, descriptors)

        journey = result.graph.find_journey("onboarding")
        assert journey.find_step("settings-view") is not None
        assert result.graph.find_journey("unassigned") is None
        # HomeView now reaches both SettingsView (sheet) and DetailView
        assert journey.find_step("home").next_ids == ["settings-view", "detail"]
        assert [c.action for c in result.changes] == ["add", "update-edges"]

    def test_placed_next_to_step_already_pointing_at_entity(self):
        """A live edge to a step for the same view places the new file there."""
        graph = WorkflowGraph(
            journeys=[
                Journey(
                    id="checkout",
                    name="Checkout",
                    steps=[
                        make_step("cart", "CartView", "App/CartView.swift", ["pay"]),
                        make_step("pay", "PaymentView", None),
                    ],
                )
            ]
        )
        path = "App/Payment/PaymentView.swift"
        scan_result = ScanResult("c2", added=[added(path, "")])

        result = merge(graph, scan_result, [descriptor(path, "PaymentView")])

        journey = result.graph.find_journey("checkout")
        assert journey.find_step("payment-view").source_file == path

    def test_step_id_collision_gets_suffix(self):
        graph = WorkflowGraph(
            journeys=[
                Journey(
                    id="unassigned",
                    steps=[make_step("welcome-view", "WelcomeView", "Old/WelcomeView.swift")],
                )
            ]
        )
        path = "App/WelcomeView.swift"
        scan_result = ScanResult("c2", added=[added(path, WELCOME_VIEW)])

        result = merge(graph, scan_result, [parse_source_file(path, WELCOME_VIEW)])

        ids = [s.id for s in result.graph.find_journey("unassigned").steps]
        assert ids == ["welcome-view", "welcome-view-2"]

    def test_cross_journey_target_is_dropped(self, onboarding_graph):
        """Edges only connect steps of the same journey."""
        path = "Extras/HelpView.swift"
        scan_result = ScanResult("c2", added=[added(path, "")])

        result = merge(
            onboarding_graph, scan_result, [descriptor(path, "HelpView", ["DetailView"])]
        )

        step = result.graph.find_journey("unassigned").find_step("help-view")
        assert step.next_ids == []


class TestRemovedFiles:
    """Removed files tombstone their step."""

    def test_tombstone(self, onboarding_graph):
        scan_result = ScanResult("c2", removed=[removed("App/DetailView.swift")])

        result = merge(onboarding_graph, scan_result, [])

        step = result.graph.find_journey("onboarding").find_step("detail")
        assert step.tombstoned is True
        assert len(result.graph.find_journey("onboarding").steps) == 3
        assert [c.action for c in result.changes] == [ChangeAction.DEPRECATE.value]

    def test_already_tombstoned_produces_no_change(self, onboarding_graph):
        onboarding_graph.find_journey("onboarding").find_step("detail").tombstoned = True
        scan_result = ScanResult("c2", removed=[removed("App/DetailView.swift")])

        result = merge(onboarding_graph, scan_result, [])

        assert result.changes == []

    def test_untracked_file_produces_no_change(self, onboarding_graph):
        scan_result = ScanResult("c2", removed=[removed("App/Unknown.swift")])

        result = merge(onboarding_graph, scan_result, [])

        assert result.changes == []
        assert result.graph.to_dict() == onboarding_graph.to_dict()


class TestModifiedFiles:
    """Modified files recompute outgoing ids."""

    def test_edge_labels_trimmed_with_edges(self):
        graph = WorkflowGraph(
            journeys=[
                Journey(
                    id="onboarding",
                    steps=[
                        make_step(
                            "gate",
                            "GateView",
                            "App/GateView.swift",
                            ["yes", "no"],
                            edge_labels=["Yes", "No"],
                        ),
                        make_step("yes", "YesView", "App/YesView.swift"),
                        make_step("no", "NoView", "App/NoView.swift"),
                    ],
                )
            ]
        )
        path = "App/GateView.swift"
        scan_result = ScanResult("c2", modified=[modified(path, "")])

        result = merge(graph, scan_result, [descriptor(path, "GateView", ["YesView"])])

        step = result.graph.find_journey("onboarding").find_step("gate")
        assert step.next_ids == ["yes"]
        assert step.edge_labels == ["Yes"]
        assert len(result.changes) == 1
        assert result.changes[0].action == ChangeAction.UPDATE_EDGES.value

    def test_unchanged_edges_produce_no_change(self, onboarding_graph):
        path = "App/WelcomeView.swift"
        scan_result = ScanResult("c2", modified=[modified(path, "")])

        result = merge(
            onboarding_graph, scan_result, [descriptor(path, "WelcomeView", ["HomeView"])]
        )

        assert result.changes == []

    def test_tombstoned_target_not_linked(self, onboarding_graph):
        onboarding_graph.find_journey("onboarding").find_step("detail").tombstoned = True
        path = "App/HomeView.swift"
        scan_result = ScanResult("c2", modified=[modified(path, "")])

        result = merge(
            onboarding_graph, scan_result, [descriptor(path, "HomeView", ["DetailView"])]
        )

        assert result.graph.find_journey("onboarding").find_step("home").next_ids == []

    def test_self_reference_kept(self, onboarding_graph):
        """A recursive screen (folder inside folder) links to its own step."""
        path = "App/DetailView.swift"
        scan_result = ScanResult("c2", modified=[modified(path, "")])

        result = merge(
            onboarding_graph,
            scan_result,
            [descriptor(path, "DetailView", ["DetailView", "DetailView"])],
        )

        journey = result.graph.find_journey("onboarding")
        assert journey.find_step("detail").next_ids == ["detail"]
        assert [c.action for c in result.changes] == ["update-edges"]
        assert validate(onboarding_graph, result.graph).ok


class TestMergeProperties:
    """Whole-merge behavior."""

    def test_empty_scan_is_identity(self, onboarding_graph):
        result = merge(onboarding_graph, ScanResult("c2"), [])

        assert result.changes == []
        assert result.review_count == 0
        assert result.graph.to_dict() == onboarding_graph.to_dict()

    def test_input_graph_not_mutated(self, onboarding_graph):
        before = onboarding_graph.to_dict()
        scan_result = ScanResult(
            "c2",
            added=[added("App/WelcomeView2.swift", "")],
            removed=[removed("App/DetailView.swift")],
        )

        merge(onboarding_graph, scan_result, [descriptor("App/WelcomeView2.swift", "IntroView")])

        assert onboarding_graph.to_dict() == before

    def test_extra_fields_survive(self, onboarding_graph):
        onboarding_graph.find_journey("onboarding").find_step("home").extra["position"] = {
            "x": 10,
            "y": 20,
        }
        scan_result = ScanResult("c2", removed=[removed("App/HomeView.swift")])

        result = merge(onboarding_graph, scan_result, [])

        node = result.graph.to_dict()["containers"][0]["nodes"][1]
        assert node["position"] == {"x": 10, "y": 20}
        assert node["tombstoned"] is True
