"""JavaScript snippets evaluated inside the rendered page."""

DISABLE_AUTO_PREVIEW = """() => {
  window.PagedConfig = window.PagedConfig || {};
  window.PagedConfig.auto = false;
}"""

SET_BASE_URL = """(url) => {
  let base = document.querySelector("base");
  if (!base) {
    base = document.createElement("base");
    document.querySelector("head").appendChild(base);
  }
  base.setAttribute("href", url);
}"""

# Page boxes are reported in raw CSS pixels; conversion happens in Python.
START_PREVIEW = """() => {
  const token = (value) => {
    if (!value) {
      return null;
    }
    const node = value.node;
    return {
      ref: node && node.dataset ? node.dataset.ref || null : null,
      offset: value.offset === undefined ? null : value.offset,
    };
  };
  const rect = (box) => ({ x: box.x, y: box.y, width: box.width, height: box.height });

  window.PagedPolyfill.on("page", (page) => {
    window.onPage({
      id: page.id,
      width: page.width,
      height: page.height,
      startToken: token(page.startToken),
      endToken: token(page.endToken),
      breakAfter: page.breakAfter || null,
      breakBefore: page.breakBefore || null,
      position: page.position,
      boxes: {
        media: rect(page.element.getBoundingClientRect()),
        crop: rect(page.pagebox.getBoundingClientRect()),
      },
    });
  });

  window.PagedPolyfill.on("size", (size) => {
    window.onSize(size);
  });

  window.PagedPolyfill.on("rendered", (flow) => {
    const msg =
      "Rendering " + flow.total + " pages took " + flow.performance + " milliseconds.";
    window.onRendered(msg, flow.width, flow.height, flow.orientation, flow.total, flow.performance);
  });

  window.PagedPolyfill.preview();
}"""

EXTRACT_METADATA = """() => {
  const meta = {};
  const title = document.querySelector("title");
  if (title) {
    meta.title = title.textContent.trim();
  }
  for (const tag of document.querySelectorAll("meta")) {
    if (tag.name) {
      meta[tag.name] = tag.content;
    }
  }
  const lang = document.documentElement.getAttribute("lang");
  if (lang && !meta.lang) {
    meta.lang = lang;
  }
  return meta;
}"""

EXTRACT_HEADINGS = """(tags) => {
  return Array.from(document.querySelectorAll(tags.join(","))).map((node) => ({
    tagName: node.tagName.toLowerCase(),
    text: node.innerText,
    id: node.id,
  }));
}"""

ANCHOR_POSITIONS = """(ids) => {
  const pages = Array.from(document.querySelectorAll(".pagedjs_page"));
  const positions = {};
  for (const id of ids) {
    const element = document.getElementById(id);
    const page = element ? element.closest(".pagedjs_page") : null;
    if (!page) {
      continue;
    }
    const pageRect = page.getBoundingClientRect();
    const elementRect = element.getBoundingClientRect();
    positions[id] = {
      pageIndex: pages.indexOf(page),
      x: elementRect.left - pageRect.left,
      y: elementRect.top - pageRect.top,
    };
  }
  return positions;
}"""

PAGES_SELECTOR = ".pagedjs_pages"
