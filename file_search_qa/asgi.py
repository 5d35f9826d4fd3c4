# file_search_qa/asgi.py

"""
Process entry point: builds the application from the environment.

    uvicorn file_search_qa.asgi:app
"""

from file_search_qa.main import create_app


app = create_app()


if __name__ == "__main__":

    import uvicorn

    uvicorn.run("file_search_qa.asgi:app", host="0.0.0.0", port=8000)
