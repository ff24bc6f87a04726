"""Tests for the SwiftUI source extractor."""

from flowsync.graph import StepCategory
from flowsync.sync.parse import (
    NavEdge,
    extract_edges,
    extract_entity_name,
    infer_category,
    parse_source_file,
)
from tests.helpers import HOME_VIEW, PROFILE_FORM_VIEW, WELCOME_VIEW


class TestExtractEntityName:
    """Tests for extract_entity_name()."""

    def test_view_struct(self):
        assert extract_entity_name(WELCOME_VIEW) == "WelcomeView"

    def test_first_view_wins(self):
        content = "struct RowView: View {}\nstruct ListView: View {}\n"
        assert extract_entity_name(content) == "RowView"

    def test_non_view_struct_ignored(self):
        """Models and other types do not define a step."""
        assert extract_entity_name("struct Account: Codable {\n    let id: UUID\n}\n") is None


class TestExtractEdges:
    """Tests for extract_edges()."""

    def test_sheet_and_navigation_link(self):
        """Edges come out in rule-table order: sheet before navigationLink."""
        edges = extract_edges(HOME_VIEW)

        assert edges == (
            NavEdge(target="SettingsView", mechanism="sheet"),
            NavEdge(target="DetailView", mechanism="navigationLink"),
        )

    def test_full_screen_cover(self):
        content = """
        .fullScreenCover(isPresented: $showPaywall) {
            PaywallView()
        }
        """
        assert extract_edges(content) == (NavEdge("PaywallView", "fullScreenCover"),)

    def test_navigation_destination(self):
        content = """
        .navigationDestination(for: Item.self) { item in
            ItemDetailView(item: item)
        }
        """
        assert extract_edges(content) == (NavEdge("ItemDetailView", "navigationDestination"),)

    def test_tab(self):
        content = """
        TabView {
            Tab {
                FeedView()
            }
        }
        """
        assert extract_edges(content) == (NavEdge("FeedView", "tabView"),)

    def test_duplicates_collapsed_per_mechanism(self):
        content = """
        NavigationLink { DetailView() } label: { Text("A") }
        NavigationLink { DetailView() } label: { Text("B") }
        .sheet(isPresented: $x) { DetailView() }
        """
        edges = extract_edges(content)

        assert edges == (
            NavEdge("DetailView", "sheet"),
            NavEdge("DetailView", "navigationLink"),
        )

    def test_no_navigation(self):
        assert extract_edges(WELCOME_VIEW) == ()


class TestInferCategory:
    """Tests for the category cascade."""

    def test_input_controls(self):
        assert infer_category(PROFILE_FORM_VIEW) is StepCategory.INPUT

    def test_input_beats_conditional_navigation(self):
        content = """
        var body: some View {
            TextField("Search", text: $query)
            if loggedIn {
                NavigationLink { ResultsView() } label: { Text("Go") }
            }
        }
        """
        assert infer_category(content) is StepCategory.INPUT

    def test_conditional_navigation_is_decision(self):
        content = """
        var body: some View {
            if isLoggedIn {
                NavigationLink { HomeView() } label: { Text("Continue") }
            }
        }
        """
        assert infer_category(content) is StepCategory.DECISION

    def test_button_with_dismiss_is_action(self):
        content = """
        @Environment(\\.dismiss) private var dismiss
        var body: some View {
            Button("Save") {
                save()
                dismiss()
            }
        }
        """
        assert infer_category(content) is StepCategory.ACTION

    def test_button_without_dismiss_is_display(self):
        content = """
        var body: some View {
            Button("Refresh") { reload() }
        }
        """
        assert infer_category(content) is StepCategory.DISPLAY

    def test_background_task_without_buttons_is_system(self):
        content = """
        var body: some View {
            ProgressView()
                .task { await sync() }
        }
        """
        assert infer_category(content) is StepCategory.SYSTEM

    def test_no_body_is_system(self):
        assert infer_category("struct Coordinator: View {}\n") is StepCategory.SYSTEM

    def test_plain_view_is_display(self):
        assert infer_category(WELCOME_VIEW) is StepCategory.DISPLAY


class TestParseSourceFile:
    """Tests for parse_source_file()."""

    def test_descriptor(self):
        descriptor = parse_source_file("App/HomeView.swift", HOME_VIEW)

        assert descriptor is not None
        assert descriptor.entity_name == "HomeView"
        assert descriptor.path == "App/HomeView.swift"
        assert descriptor.targets == ["SettingsView", "DetailView"]
        assert descriptor.category is StepCategory.DISPLAY

    def test_file_without_view_returns_none(self):
        assert parse_source_file("App/Model.swift", "enum Route { case home }\n") is None
