"""Interactive mind map of one seating plan, built with networkx and rendered with pyvis."""
import math
from typing import Dict, List, Mapping, Optional, Sequence, Tuple

import networkx as nx
from pyvis.network import Network

from .models import CANNOT, MUST, Guest, SeatingPlan

EDGE_COLORS = {
    MUST: "#3CB371",      # green
    CANNOT: "#FF6B6B",    # red
    "adjacent": "#84B6F4",  # blue
}

PALETTE = [
    "#FFB347", "#77DD77", "#AEC6CF", "#C23B22", "#F49AC2", "#B39EB5",
    "#03C03C", "#779ECB", "#966FD6", "#FFD700", "#FF6961", "#CB99C9",
    "#CFCFC4", "#FDFD96", "#84B6F4", "#FDCAE1",
]

# ---------------------------
# Public API
# ---------------------------

def build_plan_graph(
    plan: SeatingPlan,
    guests: Sequence[Guest],
    constraints: Optional[Mapping[str, Mapping[str, str]]] = None,
    adjacency: Optional[Mapping[str, Sequence[str]]] = None,
    canvas_size: Tuple[int, int] = (1600, 1000),
) -> nx.Graph:
    """
    Build a networkx graph of one plan.

    Guests are nodes placed around their table in seat order; must, cannot
    and adjacency relations are edges. Node attributes carry pyvis styling.
    """
    guest_by_id = {g.id: g for g in guests}
    table_to_ids = {t.id: t.guest_ids for t in plan.tables if t.guest_ids}
    labels = {t.id: t.name or f"Table {t.id}" for t in plan.tables}

    width, height = canvas_size
    centers = _compute_table_centers(list(table_to_ids.keys()), width, height)
    table_color = {t: PALETTE[i % len(PALETTE)] for i, t in enumerate(table_to_ids)}

    G = nx.Graph()
    for table, member_ids in table_to_ids.items():
        cx, cy = centers[table]
        coords = _circle_layout(cx, cy, 60 + 6 * len(member_ids), len(member_ids))
        for gid, (x, y) in zip(member_ids, coords):
            g = guest_by_id.get(gid)
            name = g.name if g else gid
            count = g.count if g else 1
            G.add_node(
                gid,
                label=name,
                title=_node_tooltip(name, labels[table], count),
                color=table_color[table],
                table=table,
                x=x,
                y=y,
                physics=False,
                shape="dot",
                size=14 + 4 * min(count, 4),
            )

    for a, row in (constraints or {}).items():
        for b, kind in (row or {}).items():
            if kind in (MUST, CANNOT) and a in G and b in G and not G.has_edge(a, b):
                G.add_edge(a, b, color=EDGE_COLORS[kind], label=kind, width=3, relation=kind)
    for a, partners in (adjacency or {}).items():
        for b in partners or []:
            if a in G and b in G and not G.has_edge(a, b):
                G.add_edge(a, b, color=EDGE_COLORS["adjacent"], label="adjacent", width=2, relation="adjacent")
    return G


def generate_plan_mind_map(
    plan: SeatingPlan,
    guests: Sequence[Guest],
    constraints: Optional[Mapping[str, Mapping[str, str]]] = None,
    adjacency: Optional[Mapping[str, Sequence[str]]] = None,
    canvas_size: Tuple[int, int] = (1600, 1000),
) -> str:
    """Return an HTML page showing the plan as an interactive network."""
    G = build_plan_graph(plan, guests, constraints, adjacency, canvas_size)
    net = Network(height="700px", width="100%", bgcolor="#111111", font_color="#EEEEEE")
    net.toggle_physics(False)  # positions are fixed
    net.from_nx(G)
    html = net.generate_html()
    return _inject_legend_html(html)

# ---------------------------
# Internals
# ---------------------------

def _compute_table_centers(tables: List[str], width: int, height: int) -> Dict[str, Tuple[int, int]]:
    """
    Place table centers on a grid inside the canvas area.
    """
    if not tables:
        return {}
    n = len(tables)
    cols = max(1, int(math.ceil(math.sqrt(n))))
    rows = int(math.ceil(n / cols))
    margin = 120
    step_x = max(1, width - 2 * margin) // cols
    step_y = max(1, height - 2 * margin) // rows

    centers: Dict[str, Tuple[int, int]] = {}
    for idx, table in enumerate(tables):
        r, c = divmod(idx, cols)
        centers[table] = (margin + c * step_x + step_x // 2, margin + r * step_y + step_y // 2)
    return centers


def _circle_layout(cx: int, cy: int, r: int, n: int) -> List[Tuple[int, int]]:
    pts = []
    for i in range(n):
        theta = 2 * math.pi * i / max(1, n)
        pts.append((int(cx + r * math.cos(theta)), int(cy + r * math.sin(theta))))
    return pts


def _node_tooltip(name: str, table: str, count: int) -> str:
    return f"<b>{name}</b><br>Table: {table}<br>Party size: {count}"


def _inject_legend_html(html: str) -> str:
    legend = f"""
    <style>
    .legend-box{{
      position:absolute;right:12px;bottom:12px;
      background:#222;color:#eee;border:1px solid #444;border-radius:8px;
      padding:8px 12px;font-family:system-ui, -apple-system, Segoe UI, Roboto, Arial;font-size:12px;
      z-index:10;
    }}
    .legend-swatch{{display:inline-block;width:12px;height:12px;margin-right:6px;vertical-align:middle;border:1px solid #444;}}
    </style>
    <div class="legend-box">
      <div><span class="legend-swatch" style="background:{EDGE_COLORS[MUST]}"></span>must sit together</div>
      <div><span class="legend-swatch" style="background:{EDGE_COLORS[CANNOT]}"></span>cannot sit together</div>
      <div><span class="legend-swatch" style="background:{EDGE_COLORS['adjacent']}"></span>sit next to</div>
      <div style="margin-top:6px;">node color: table</div>
    </div>
    """
    if "</body>" in html:
        return html.replace("</body>", legend + "</body>", 1)
    return html + legend
