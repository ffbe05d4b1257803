"""注入页面执行的脚本

所有脚本都以参数形式接收选择器，不做字符串拼接。
"""

from __future__ import annotations

# 当前页面的 URL 与标题
PAGE_INFO_JS = r"""
() => ({ url: window.location.href, title: document.title })
"""

# 选择器匹配的元素数量；非法选择器会抛出异常
COUNT_ELEMENTS_JS = r"""
(selector) => document.querySelectorAll(selector).length
"""

# 单个元素的原始内容；元素不存在时返回 null
ELEMENT_DATA_JS = r"""
(selector) => {
  const el = document.querySelector(selector);
  if (!el) return null;
  return {
    text: el.textContent || '',
    href: el.href || el.getAttribute('href') || '',
    element: el.tagName,
  };
}
"""

# 选择器匹配的全部元素的原始内容（DOM 顺序）
ELEMENTS_DATA_JS = r"""
(selector) => Array.from(document.querySelectorAll(selector)).map((el) => ({
  text: el.textContent || '',
  href: el.href || el.getAttribute('href') || '',
  element: el.tagName,
}))
"""

# 可访问性风格的快照：链接、按钮、输入框、标题以及短文本叶子节点。
# 选择器从最近的带 id 祖先开始，同名兄弟用 :nth-of-type(n) 区分。
SNAPSHOT_JS = r"""
() => {
  const MAX_TEXT = 200;
  const INTERACTIVE = 'a[href], button, input, textarea, select, [role], h1, h2, h3, h4, h5, h6';
  const LEAF_TEXT = 'span, td, p, li, div, time, label, strong, em, small';

  const implicitRole = (el) => {
    const explicit = el.getAttribute('role');
    if (explicit) return explicit;
    const tag = el.tagName.toLowerCase();
    if (tag === 'a') return 'link';
    if (tag === 'button') return 'button';
    if (tag === 'select') return 'combobox';
    if (tag === 'textarea') return 'textbox';
    if (tag === 'input') {
      const type = (el.getAttribute('type') || 'text').toLowerCase();
      if (type === 'checkbox') return 'checkbox';
      if (type === 'radio') return 'radio';
      if (type === 'submit' || type === 'button') return 'button';
      return 'textbox';
    }
    if (/^h[1-6]$/.test(tag)) return 'heading';
    return 'text';
  };

  const segment = (el) => {
    const tag = el.tagName.toLowerCase();
    const classes = Array.from(el.classList)
      .filter((c) => /^[A-Za-z_-][\w-]*$/.test(c))
      .slice(0, 2)
      .map((c) => '.' + CSS.escape(c))
      .join('');
    const parent = el.parentElement;
    if (!parent) return tag + classes;
    const sameTag = Array.from(parent.children).filter((c) => c.tagName === el.tagName);
    if (sameTag.length > 1) {
      return `${tag}${classes}:nth-of-type(${sameTag.indexOf(el) + 1})`;
    }
    return tag + classes;
  };

  const buildSelector = (el) => {
    const parts = [];
    let node = el;
    while (node && node.nodeType === 1 && node !== document.documentElement) {
      if (node.id && /^[A-Za-z][\w-]*$/.test(node.id)) {
        parts.unshift('#' + CSS.escape(node.id));
        break;
      }
      parts.unshift(segment(node));
      node = node.parentElement;
    }
    return parts.join(' > ');
  };

  const isVisible = (el) => {
    const rect = el.getBoundingClientRect();
    if (rect.width <= 0 || rect.height <= 0) return false;
    const style = window.getComputedStyle(el);
    return style.visibility !== 'hidden' && style.display !== 'none';
  };

  const clean = (s) => (s || '').replace(/\s+/g, ' ').trim().slice(0, MAX_TEXT);

  const seen = new Set();
  const candidates = [];
  document.querySelectorAll(INTERACTIVE).forEach((el) => candidates.push(el));
  document.querySelectorAll(LEAF_TEXT).forEach((el) => {
    if (el.children.length === 0 && clean(el.textContent)) candidates.push(el);
  });

  // 文档顺序，保证 "第一个匹配" 的语义稳定
  candidates.sort((a, b) => {
    if (a === b) return 0;
    return a.compareDocumentPosition(b) & Node.DOCUMENT_POSITION_FOLLOWING ? -1 : 1;
  });

  const elements = [];
  for (const el of candidates) {
    if (seen.has(el) || !isVisible(el)) continue;
    seen.add(el);
    const rect = el.getBoundingClientRect();
    const text = clean(el.innerText || el.textContent);
    elements.push({
      role: implicitRole(el),
      name: clean(el.getAttribute('aria-label') || el.getAttribute('title') || text),
      selector: buildSelector(el),
      bounds: { x: rect.x, y: rect.y, width: rect.width, height: rect.height },
      text: text || null,
      value: 'value' in el && typeof el.value === 'string' ? el.value : null,
    });
  }
  return elements;
}
"""
