from fastapi import FastAPI, HTTPException
from fastapi.middleware.cors import CORSMiddleware
from pydantic import BaseModel
from typing import List, Dict, Any, Optional
import threading
import uvicorn

from structgraph import __version__
from structgraph.config import settings
from structgraph.loader import RecordLoadError
from structgraph.session import GraphSession
from structgraph.utils.logger import app_logger


logger = app_logger.bind(component="api_server")

app = FastAPI(title="Project Structure Graph API", version=__version__)

# Add CORS middleware
app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

# Initialize components
session = GraphSession()
session_lock = threading.Lock()


class GraphDataResponse(BaseModel):
    nodes: List[Dict[str, Any]]
    edges: List[Dict[str, Any]]
    metadata: Dict[str, Any]


class RenderResponse(BaseModel):
    nodes: List[Dict[str, Any]]
    edges: List[Dict[str, Any]]
    viewport: Dict[str, float]
    query: str
    expanded: List[str]


class NodeDetailsResponse(BaseModel):
    node: Dict[str, Any]
    aliases: List[str]
    related_edges: List[Dict[str, Any]]
    related_nodes: List[Dict[str, Any]]
    secondary_nodes: List[Dict[str, Any]]
    visibility: Optional[str] = None


class LoadFileRequest(BaseModel):
    path: str


class SearchRequest(BaseModel):
    query: str = ""


class SearchResponse(BaseModel):
    matched: List[str]
    total_matches: int


class ToggleResponse(BaseModel):
    key: str
    state: Optional[str] = None


class ClickRequest(BaseModel):
    timestamp: Optional[float] = None


class PanRequest(BaseModel):
    dx: float
    dy: float


class ZoomRequest(BaseModel):
    factor: float


class ScrollRequest(BaseModel):
    delta: float


@app.get("/")
def root():
    """Describe the service."""
    return {
        "service": "Project Structure Graph API",
        "version": __version__,
        "nodes": len(session.result.nodes),
        "edges": len(session.result.edges),
    }


@app.post("/api/load", response_model=GraphDataResponse)
def load_records(records: Dict[str, Any]):
    """Rebuild the graph from a record set sent as the request body."""
    with session_lock:
        try:
            result = session.build_graph(records)
        except RecordLoadError as e:
            raise HTTPException(status_code=400, detail=str(e))
        return GraphDataResponse(**result.to_dict())


@app.post("/api/load-file", response_model=GraphDataResponse)
def load_file(request: LoadFileRequest):
    """Rebuild the graph from a JSON or YAML record file on the server."""
    with session_lock:
        try:
            result = session.load_file(request.path)
        except RecordLoadError as e:
            raise HTTPException(status_code=400, detail=str(e))
        return GraphDataResponse(**result.to_dict())


@app.get("/api/graph", response_model=GraphDataResponse)
def get_graph_data():
    """Get the complete built graph, detached property nodes included."""
    with session_lock:
        return GraphDataResponse(**session.result.to_dict())


@app.delete("/api/graph")
def clear_graph():
    """Drop the current graph."""
    with session_lock:
        session.clear()
        return {"status": "cleared"}


@app.get("/api/render", response_model=RenderResponse)
def get_render_state():
    """Get what is currently drawn, with styling and viewport."""
    with session_lock:
        return RenderResponse(**session.render())


@app.get("/api/node/{node_key:path}", response_model=NodeDetailsResponse)
def get_node_details(node_key: str):
    """Get detailed information about a specific node."""
    with session_lock:
        details = session.get_node_details(node_key)
        if not details:
            raise HTTPException(status_code=404, detail="Node not found")
        return NodeDetailsResponse(**details)


@app.post("/api/search", response_model=SearchResponse)
def search_nodes(request: SearchRequest):
    """Highlight nodes by name; an empty query clears the highlight."""
    with session_lock:
        matched = session.filter(request.query)
        return SearchResponse(matched=matched, total_matches=len(matched))


@app.post("/api/nodes/{node_key:path}/toggle", response_model=ToggleResponse)
def toggle_node(node_key: str):
    """Expand or collapse the property nodes of a component."""
    with session_lock:
        try:
            state = session.toggle(node_key)
        except KeyError:
            raise HTTPException(status_code=404, detail="Node not found")
        return ToggleResponse(key=node_key, state=state.value if state else None)


@app.post("/api/nodes/{node_key:path}/click", response_model=ToggleResponse)
def click_node(node_key: str, request: ClickRequest):
    """Primary click on a node; the second click of a double click toggles it."""
    with session_lock:
        try:
            state = session.click(node_key, request.timestamp)
        except KeyError:
            raise HTTPException(status_code=404, detail="Node not found")
        return ToggleResponse(key=node_key, state=state.value if state else None)


@app.post("/api/viewport/pan")
def pan_viewport(request: PanRequest):
    with session_lock:
        session.pan(request.dx, request.dy)
        return session.controller.viewport.to_dict()


@app.post("/api/viewport/zoom")
def zoom_viewport(request: ZoomRequest):
    with session_lock:
        try:
            session.zoom(request.factor)
        except ValueError as e:
            raise HTTPException(status_code=400, detail=str(e))
        return session.controller.viewport.to_dict()


@app.post("/api/viewport/scroll")
def scroll_viewport(request: ScrollRequest):
    with session_lock:
        session.scroll(request.delta)
        return session.controller.viewport.to_dict()


@app.get("/api/stats")
def get_stats():
    """Get build statistics."""
    with session_lock:
        return session.stats()


def run(host: str = None, port: int = None):
    logger.info("Starting Project Structure Graph API server")
    uvicorn.run(
        app,
        host=host or settings.api_host,
        port=port or settings.api_port,
        log_level=settings.log_level.lower(),
    )


if __name__ == "__main__":
    run()
