"""TaskDeck: personal task management with a REST API and a Streamlit client."""
